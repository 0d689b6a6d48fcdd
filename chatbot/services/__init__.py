"""
SERVICES PACKAGE
================

Business logic lives here. The API layer (chatbot.main) and the terminal
client (chat_cli.py) call these services; they don't render anything.

MODULES:
    gateway      - CompletionGateway: one request to OpenRouter, classified failures.
    chat_session - ChatSession: the conversation log and its idle/pending exchange.
    preferences  - DisplayPreferences and the settings panel state machine.
    database     - ConversationStore: best-effort Supabase archival with explicit outcomes.
"""
