"""
CHATBOT TERMINAL CLIENT
=======================

PURPOSE:
Interactive front-end for the chatbot server. Keeps one ChatSession (the
conversation log lives here, not on the server), sends each message to
POST /api/chat, and renders the transcript with the chosen theme.

USAGE:
    python chat_cli.py

    Make sure the server is running first: python run.py

COMMANDS:
    /history    - Show the whole conversation
    /clear      - Start a new session (the old log is dropped)
    /settings   - Show or hide the settings panel
    /close      - Close the settings panel
    /theme      - Switch between light and dark theme
    /autoscroll - Turn auto-scroll on or off
    /font <small|medium|large>        - Message font size (cosmetic)
    /length <100|500|1000>            - Max response length selector (cosmetic, not sent)
    /save <user_id>                   - Archive this conversation to Supabase (if configured)
    /quit or /exit                    - Exit
"""

from chatbot.services.chat_session import ApiChatTransport, ChatSession
from chatbot.services.database import ConversationStore
from chatbot.utils.render import render_transcript, render_turn
from config import ASSISTANT_NAME, CHAT_API_URL, CHAT_MODEL


# -----------------------------------------------------------------------------
# UI HELPERS
# -----------------------------------------------------------------------------

def print_header():
    print("\n" + "=" * 60)
    print("🤖 Simple Chatbot")
    print(f"   Server: {CHAT_API_URL}  •  Model: {CHAT_MODEL}")
    print("=" * 60)
    print("\nCommands: /history /clear /settings /theme /autoscroll /save /quit")
    print("=" * 60 + "\n")


def settings_panel_text(session: ChatSession) -> str:
    prefs = session.preferences
    ctx = prefs.render_context()
    lines = [
        "⚙️  Settings",
        f"  Dark mode:            {'on' if prefs.theme.value == 'dark' else 'off'}   (/theme)",
        f"  Auto-scroll:          {'on' if prefs.auto_scroll else 'off'}   (/autoscroll)",
        f"  Message font size:    {prefs.font_size}   (/font)",
        f"  Max response length:  {prefs.max_response_length} tokens   (/length)",
        "  /close to hide this panel",
    ]
    return "\n".join(ctx.paint(f" {line} ", "panel") for line in lines)


def show_transcript(session: ChatSession):
    ctx = session.preferences.render_context()
    print(render_transcript(session.turns, session.pending, ctx, ASSISTANT_NAME))


def get_user_input():
    """Read a line from the user; None on Ctrl+C / Ctrl+D."""
    try:
        return input("\nYou: ")
    except (KeyboardInterrupt, EOFError):
        return None


# -----------------------------------------------------------------------------
# COMMANDS
# -----------------------------------------------------------------------------

def save_session(session: ChatSession, store: ConversationStore, user_id: str) -> str:
    if not user_id:
        return "❌ Usage: /save <user_id>"
    result = store.archive_session(user_id, session.turns)
    if result.is_disabled:
        return "❌ Supabase is not configured; nothing was saved."
    if not result.ok:
        saved = (result.data or {}).get("saved", 0)
        return f"❌ Save failed after {saved} messages: {result.error}"
    return f"✅ Saved {result.data['saved']} messages (conversation {result.data['conversation'].get('id')})"


def handle_command(command: str, session: ChatSession, store: ConversationStore):
    """
    Apply one slash command. Returns (session, keep_running); /clear hands back a
    fresh session.
    """
    name, _, argument = command.partition(" ")
    argument = argument.strip()
    prefs = session.preferences

    if name in ("/quit", "/exit"):
        return session, False
    if name == "/history":
        show_transcript(session)
    elif name == "/clear":
        session = ChatSession(session.transport, preferences=prefs)
        print("\n🔄 Session cleared. Starting fresh!")
        show_transcript(session)
    elif name == "/settings":
        prefs.settings_panel.toggle()
        if prefs.settings_panel.visible:
            print(settings_panel_text(session))
    elif name == "/close":
        prefs.settings_panel.close()
    elif name == "/theme":
        theme = prefs.toggle_theme()
        print(f"✅ Theme: {theme.value}")
        show_transcript(session)
    elif name == "/autoscroll":
        print(f"✅ Auto-scroll {'on' if prefs.toggle_auto_scroll() else 'off'}")
    elif name in ("/font", "/length"):
        try:
            if name == "/font":
                prefs.set_font_size(argument)
            else:
                prefs.set_max_response_length(int(argument))
        except ValueError as e:
            print(f"❌ {e}")
    elif name == "/save":
        print(save_session(session, store, argument))
    else:
        print(f"❌ Unknown command: {command}")

    if prefs.settings_panel.visible and name not in ("/settings", "/close", "/quit", "/exit"):
        print(settings_panel_text(session))
    return session, True


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    """Chat until /quit, /exit, Ctrl+C or Ctrl+D."""
    print_header()
    session = ChatSession(ApiChatTransport(CHAT_API_URL))
    store = ConversationStore()
    show_transcript(session)

    while True:
        user_input = get_user_input()
        if user_input is None:
            break

        if user_input.strip().startswith("/"):
            session, keep_running = handle_command(user_input.strip(), session, store)
            if not keep_running:
                break
            continue

        session.input_buffer = user_input
        if user_input.strip():
            print(f"🤖 {ASSISTANT_NAME}: Thinking...", flush=True)
        reply = session.submit_turn()
        if reply is None:
            continue
        ctx = session.preferences.render_context()
        if session.preferences.auto_scroll:
            print(render_turn(reply, ctx, ASSISTANT_NAME))
        else:
            print("(new reply - /history to view)")

    print("\n👋 Goodbye!")


# Run the interactive loop when this file is executed (python chat_cli.py).
if __name__ == "__main__":
    main()
