"""
Minesweeper Bot - Interactive Demo

Run with: streamlit run app/demo.py
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st
from typing import Dict, Optional, Tuple

from minebot import HYBRID, PURE_AI, Board, Move, SegmentSolver, Solver
from minebot.config import LEVELS

NUMBER_COLORS = {
    1: "#0000ff",
    2: "#008000",
    3: "#ff0000",
    4: "#000080",
    5: "#800000",
    6: "#008080",
    7: "#000000",
    8: "#808080",
}


def render_board_html(
    board: Board,
    highlight_cell: Optional[Tuple[int, int]] = None,
    probabilities: Optional[Dict[Tuple[int, int], float]] = None,
) -> str:
    """Render the board as an HTML table, revealing mines once the game is over."""
    # Scale cell size based on board width
    if board.width >= 30:
        cell_size, font_size = 16, "10px"
    elif board.width >= 16:
        cell_size, font_size = 22, "12px"
    else:
        cell_size, font_size = 28, "14px"

    show_mines = board.game_over or board.check_clear()

    html = '<div style="font-family: monospace; line-height: 1.2;">'
    html += '<table style="border-collapse: collapse; margin: auto;">'

    for y in range(board.height):
        html += "<tr>"
        for x in range(board.width):
            c = board.cells[y][x]
            text_color = "#000000"

            if c.is_revealed and c.is_mine:
                display, bg, text_color = "M", "#ff0000", "#ffffff"
            elif c.is_revealed:
                display = str(c.neighbor_count) if c.neighbor_count else " "
                bg = "#f0f0f0" if c.neighbor_count == 0 else "#ffffff"
                text_color = NUMBER_COLORS.get(c.neighbor_count, "#000000")
            elif c.is_flagged:
                display, bg, text_color = "F", "#ffa500", "#ffffff"
            elif show_mines and c.is_mine:
                display, bg, text_color = "M", "#ffcccc", "#ff0000"
            elif probabilities and (x, y) in probabilities:
                display = f"{round(probabilities[(x, y)] * 100)}"
                bg, text_color = "#c0c0c0", "#333333"
            else:
                display, bg, text_color = ".", "#c0c0c0", "#666666"

            border = "3px solid #ff0000" if (x, y) == highlight_cell else "1px solid #999"

            html += f'''<td style="
                width: {cell_size}px; height: {cell_size}px;
                text-align: center;
                background: {bg};
                border: {border};
                color: {text_color};
                font-weight: bold;
                font-size: {font_size};
            ">{display}</td>'''
        html += "</tr>"

    html += "</table></div>"
    return html


def new_game(width: int, height: int, mines: int, mode: str) -> None:
    board = Board(width, height, mines)
    st.session_state.board = board
    st.session_state.solver = Solver(board, mode)
    st.session_state.last_move = None
    st.session_state.history = []


def step(solver: Solver) -> Optional[Move]:
    move = solver.next_move()
    if move is None:
        return None
    solver.apply(move)
    st.session_state.last_move = move
    st.session_state.history.append(move)
    return move


def main():
    st.set_page_config(
        page_title="Minesweeper Bot",
        page_icon="💣",
        layout="wide",
    )

    st.title("Minesweeper Bot")
    st.markdown("""
    A layered Minesweeper bot: logic rules, subset elimination, exact frontier
    enumeration, a learned estimator and a random fallback.
    """)

    # Sidebar configuration
    st.sidebar.header("Game Configuration")

    preset = st.sidebar.selectbox(
        "Difficulty Preset",
        ["Beginner (9x9, 10)", "Intermediate (16x16, 40)", "Expert (30x16, 99)", "Custom"],
    )

    if preset == "Custom":
        width = st.sidebar.slider("Width", 5, 30, 16)
        height = st.sidebar.slider("Height", 5, 30, 16)
        max_mines = width * height - 9
        mines = st.sidebar.slider("Mines", 1, max_mines, min(40, max_mines))
    else:
        width, height, mines = LEVELS[preset.split()[0].lower()]

    mode = st.sidebar.selectbox(
        "Solver Mode",
        [HYBRID, PURE_AI],
        format_func=lambda m: "Hybrid (Recommended)" if m == HYBRID else "Pure AI",
        help="hybrid: logic, subset and tank stages before the estimator. "
             "pure_ai: estimator only, for evaluating the learned heuristic.",
    )

    show_probs = st.sidebar.checkbox(
        "Show tank probabilities",
        value=False,
        help="Overlay exact mine probabilities (in %) on solved frontier cells.",
    )

    # Auto-generate new game when settings change
    current_settings = (width, height, mines, mode)
    if st.session_state.get("prev_settings") != current_settings:
        new_game(width, height, mines, mode)
        st.session_state.prev_settings = current_settings

    board: Board = st.session_state.board
    solver: Solver = st.session_state.solver

    col1, col2 = st.columns([3, 1])

    with col1:
        st.subheader("Game Board")

        btn_col1, btn_col2, btn_col3 = st.columns(3)
        with btn_col1:
            if st.button("New Board", type="primary"):
                new_game(width, height, mines, mode)
                st.rerun()
        with btn_col2:
            if st.button("Next Move"):
                step(solver)
                st.rerun()
        with btn_col3:
            if st.button("Auto-play"):
                while step(solver) is not None:
                    pass
                st.rerun()

        last_move: Optional[Move] = st.session_state.last_move
        probabilities = SegmentSolver(board).probabilities() if show_probs else None
        html = render_board_html(
            board,
            highlight_cell=last_move.cell if last_move else None,
            probabilities=probabilities,
        )
        st.markdown(html, unsafe_allow_html=True)

        if board.game_over:
            st.error("Game Over! Hit a mine.")
        elif board.check_clear():
            st.success("Cleared! All safe cells revealed.")

        if last_move is not None:
            guess = "guess" if last_move.is_guess else "certain"
            st.info(
                f"Last move: **{last_move.kind}** ({last_move.x}, {last_move.y}), "
                f"*{last_move.strategy}*, {guess}, confidence {last_move.confidence:.2f}"
            )

    with col2:
        st.subheader("Bot Statistics")
        st.metric("Moves", len(st.session_state.history))
        st.metric("Guesses", solver.guess_count)
        st.metric("Mines Remaining", board.mines_remaining())

        st.markdown("---")
        st.markdown("**Moves by strategy**")
        if solver.strategy_counts:
            for name, count in sorted(solver.strategy_counts.items()):
                st.text(f"{name}: {count}")
        else:
            st.text("No moves yet.")

        if solver.estimator is None:
            st.warning("Estimator weights unavailable; guesses fall back to random.")

        st.markdown("---")
        st.subheader("Algorithm Info")
        st.markdown("""
        **Stages (hybrid):**
        1. **Logic**: single-number safe/mine rules
        2. **Subset**: difference of nested neighbor sets
        3. **Tank**: exact enumeration per frontier segment
        4. **AI**: estimator picks the least risky cell
        5. **Random**: uniform fallback
        """)


if __name__ == "__main__":
    main()
