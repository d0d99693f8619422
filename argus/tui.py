"""Full-screen terminal chat with the agent."""

from __future__ import annotations

import curses
import locale
import sys
from typing import Iterable, NamedTuple

from argus.chat import USER_ROLE, ArgusState, ChatMessage, ChatSession
from argus.llm import DEFAULT_MODEL, OpenRouterClient
from argus.mcp import McpClient
from argus.tools import ToolExecutor

ARGUS_WATCHING = r"""
        ╭──◉──╮
       ╭┤◉ ◉ ◉├╮
      ◉│ ╭───╮ │◉
      ◉│ │◉ ◉│ │◉
      ◉│ │ ▽ │ │◉
       │ ╰───╯ │
    ◉──┤ ◉ ◉ ◉ ├──◉
   ╭───┤       ├───╮
   │◉◉◉│ ◉ ◉ ◉ │◉◉◉│
   ╰───┤       ├───╯
       │ ◉   ◉ │
       ╰┬─┴─┬─╯
        │   │
       ─┴─ ─┴─
   ═══════════════
    👁 ALL EYES OPEN"""

ARGUS_THINKING = r"""
        ╭──◎──╮
       ╭┤◎ ◎ ◎├╮
      ◎│ ╭───╮ │◎
      ◎│ │⊛ ⊛│ │◎
      ◎│ │ ─ │ │◎
       │ ╰───╯ │
    ◎──┤ ◎ ◎ ◎ ├──◎
   ╭───┤ ≋≋≋≋≋ ├───╮
   │◎◎◎│ ◎ ◎ ◎ │◎◎◎│
   ╰───┤       ├───╯
       │ ◎   ◎ │
       ╰┬─┴─┬─╯
        │   │
       ─┴─ ─┴─
   ═══════════════
    ⟳ THINKING..."""

ARGUS_ALERT = r"""
        ╭──⊙──╮
       ╭┤⊙ ⊙ ⊙├╮
      ⊙│ ╭───╮ │⊙
      ⊙│ │⊚ ⊚│ │⊙
      ⊙│ │ ! │ │⊙
       │ ╰───╯ │
    ⊙──┤ ⊙ ⊙ ⊙ ├──⊙
   ╭───┤ ▓▓▓▓▓ ├───╮
   │⊙⊙⊙│ ⊙ ⊙ ⊙ │⊙⊙⊙│
   ╰───┤       ├───╯
       │ ⊙   ⊙ │
       ╰┬─┴─┬─╯
        │   │
       ─┴─ ─┴─
   ═══════════════
    ⚡ EXECUTING"""

ARGUS_SUCCESS = r"""
        ╭──✦──╮
       ╭┤✦ ✦ ✦├╮
      ✦│ ╭───╮ │✦
      ✦│ │◉ ◉│ │✦
      ✦│ │ ◡ │ │✦
       │ ╰───╯ │
    ✦──┤ ✦ ✦ ✦ ├──✦
   ╭───┤ ░░░░░ ├───╮
   │✦✦✦│ ✦ ✦ ✦ │✦✦✦│
   ╰───┤       ├───╯
       │ ✦   ✦ │
       ╰┬─┴─┬─╯
        │   │
       ─┴─ ─┴─
   ═══════════════
    ✓ COMPLETE"""

_AVATAR_WIDTH = 22
_MAX_SCROLL = 65535
_MODEL_LABEL = DEFAULT_MODEL.rsplit("/", 1)[-1]


class Avatar(NamedTuple):
    art: str
    color: str
    title: str


class ChatLine(NamedTuple):
    text: str
    color: str
    bold: bool = False


_AVATARS = {
    ArgusState.WATCHING: Avatar(ARGUS_WATCHING, "cyan", " Watching "),
    ArgusState.THINKING: Avatar(ARGUS_THINKING, "yellow", " Thinking... "),
    ArgusState.TOOL_ACTIVE: Avatar(ARGUS_ALERT, "magenta", " Tool Active "),
    ArgusState.SUCCESS: Avatar(ARGUS_SUCCESS, "green", " Complete "),
}


def avatar_for(state: ArgusState) -> Avatar:
    """Art, colour and title shown for an agent state."""
    return _AVATARS[ArgusState(state)]


def render_chat_lines(messages: Iterable[ChatMessage]) -> list[ChatLine]:
    """Lay out chat messages as styled lines: a role header, indented body, a blank."""
    lines: list[ChatLine] = []
    for message in messages:
        is_user = message.role == USER_ROLE
        header_color = "green" if is_user else "cyan"
        prefix = "► " if is_user else "◉ "
        lines.append(ChatLine(prefix + message.role, header_color, True))
        body_color = "white" if is_user else "gray"
        lines.extend(ChatLine(f"  {line}", body_color) for line in message.content.splitlines())
        lines.append(ChatLine("", ""))
    return lines


def mcp_status(client: McpClient) -> str:
    """Status-bar summary of connected MCP servers, empty when there are none."""
    servers = len(client.servers)
    if not servers:
        return ""
    tools = sum(len(server.tools) for server in client.servers)
    return f"🔌 {servers} MCP ({tools} tools) "


def _palette() -> dict[str, int]:
    names = {
        "cyan": (curses.COLOR_CYAN, 0),
        "yellow": (curses.COLOR_YELLOW, 0),
        "magenta": (curses.COLOR_MAGENTA, 0),
        "green": (curses.COLOR_GREEN, 0),
        "blue": (curses.COLOR_BLUE, 0),
        "white": (curses.COLOR_WHITE, curses.A_BOLD),
        "gray": (curses.COLOR_WHITE, 0),
        "dark_gray": (curses.COLOR_WHITE, curses.A_DIM),
    }
    palette = {"": 0}
    if not curses.has_colors():
        palette.update({name: extra for name, (_, extra) in names.items()})
        return palette
    curses.start_color()
    try:
        curses.use_default_colors()
        background = -1
    except curses.error:
        background = curses.COLOR_BLACK
    for pair, (name, (color, extra)) in enumerate(names.items(), start=1):
        curses.init_pair(pair, color, background)
        palette[name] = curses.color_pair(pair) | extra
    return palette


def _put(win, y: int, x: int, text: str, attr: int = 0) -> None:
    height, width = win.getmaxyx()
    if y < 0 or y >= height or x < 0 or x >= width:
        return
    try:
        win.addstr(y, x, text[: width - x], attr)
    except curses.error:
        pass


def _frame(win, y: int, x: int, height: int, width: int, title: str, border: int, title_attr: int) -> None:
    if height < 2 or width < 2:
        return
    _put(win, y, x, "┌" + "─" * (width - 2) + "┐", border)
    for row in range(y + 1, y + height - 1):
        _put(win, row, x, "│", border)
        _put(win, row, x + width - 1, "│", border)
    _put(win, y + height - 1, x, "└" + "─" * (width - 2) + "┘", border)
    if title:
        _put(win, y, x + 1, title[: max(0, width - 2)], title_attr)


def _wrap(lines: list[ChatLine], width: int) -> list[ChatLine]:
    wrapped: list[ChatLine] = []
    width = max(1, width)
    for line in lines:
        if not line.text:
            wrapped.append(line)
            continue
        wrapped.extend(
            ChatLine(line.text[start:start + width], line.color, line.bold)
            for start in range(0, len(line.text), width)
        )
    return wrapped


def _draw(stdscr, session: ChatSession, mcp: McpClient, text: str, scroll: int, palette: dict[str, int]) -> None:
    stdscr.erase()
    height, width = stdscr.getmaxyx()
    dark = palette["dark_gray"]

    avatar = avatar_for(session.state)
    left = min(_AVATAR_WIDTH, width)
    _frame(stdscr, 0, 0, height, left, avatar.title, dark, palette[avatar.color])
    inner = max(0, left - 2)
    for row, art_line in enumerate(avatar.art.split("\n"), start=1):
        if row >= height - 1:
            break
        offset = max(0, (inner - len(art_line)) // 2)
        _put(stdscr, row, 1 + offset, art_line[:inner], palette[avatar.color])

    x0 = left
    right = width - left
    if right < 4 or height < 8:
        stdscr.refresh()
        return

    header = "👁️  ARGUS │ The Hundred-Eyed Agent"
    _put(stdscr, 1, x0 + max(0, (right - len(header)) // 2), header, palette["cyan"] | curses.A_BOLD)
    _put(stdscr, 2, x0, "─" * right, dark)

    chat_top = 3
    chat_height = height - chat_top - 4
    _frame(stdscr, chat_top, x0, chat_height, right, " Messages ", dark, palette["cyan"])
    visible = _wrap(render_chat_lines(session.messages), right - 2)[scroll:scroll + max(0, chat_height - 2)]
    for row, line in enumerate(visible, start=chat_top + 1):
        attr = palette.get(line.color, 0) | (curses.A_BOLD if line.bold else 0)
        _put(stdscr, row, x0 + 1, line.text, attr)

    busy = session.busy
    input_top = height - 4
    _frame(
        stdscr,
        input_top,
        x0,
        3,
        right,
        " Wait... " if busy else " Message ",
        dark if busy else palette["cyan"],
        palette["yellow"] if busy else palette["cyan"],
    )
    shown = text[-(right - 2):] if right > 2 else ""
    _put(stdscr, input_top + 1, x0 + 1, shown, dark if busy else palette["white"])

    segments = [
        (" ESC", "yellow"), (" quit ", "dark_gray"),
        ("ENTER", "yellow"), (" send ", "dark_gray"),
        ("↑↓", "yellow"), (" scroll ", "dark_gray"),
        ("│ ", "dark_gray"), (mcp_status(mcp), "blue"),
        ("🔐 ", "green"), ("│ ", "dark_gray"), (_MODEL_LABEL, "magenta"),
    ]
    column = x0
    for segment, color in segments:
        _put(stdscr, height - 1, column, segment, palette[color])
        column += len(segment)
    stdscr.refresh()


def _loop(stdscr, session: ChatSession, mcp: McpClient) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    stdscr.keypad(True)
    stdscr.timeout(50)
    palette = _palette()
    text = ""
    scroll = 0
    while True:
        _draw(stdscr, session, mcp, text, scroll, palette)
        try:
            key = stdscr.get_wch()
        except curses.error:
            continue
        if session.busy:
            continue
        session.state = ArgusState.WATCHING
        if key == "\x1b":
            break
        if key in ("\n", "\r") or key == curses.KEY_ENTER:
            if text.strip():
                pending, text = text, ""
                session.state = ArgusState.THINKING
                _draw(stdscr, session, mcp, text, scroll, palette)
                session.send_message(pending)
        elif key in (curses.KEY_BACKSPACE, "\x7f", "\b"):
            text = text[:-1]
        elif key == curses.KEY_UP:
            scroll = max(0, scroll - 1)
        elif key == curses.KEY_DOWN:
            scroll = min(_MAX_SCROLL, scroll + 1)
        elif isinstance(key, str) and key.isprintable():
            text += key


def run_tui(api_key: str) -> None:
    """Run the interactive chat until the user presses Escape."""
    mcp = McpClient()
    for error in mcp.connect_all():
        print(f"MCP: {error}", file=sys.stderr)
    try:
        session = ChatSession(OpenRouterClient(api_key), ToolExecutor(mcp=mcp))
        locale.setlocale(locale.LC_ALL, "")
        curses.wrapper(_loop, session, mcp)
    finally:
        mcp.close()