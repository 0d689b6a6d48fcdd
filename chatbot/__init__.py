"""
CHATBOT APPLICATION PACKAGE
===========================

Main Python package for the chatbot: a thin chat proxy in front of a hosted
language-model API plus the single-session chat client that talks to it.

FILE STRUCTURE:
  chatbot/
    __init__.py   - This file; marks 'chatbot' as a package.
    main.py       - FastAPI app and HTTP endpoints (POST /api/chat, /health).
    models.py     - Pydantic models for turns, API bodies and archived records.
    services/     - Completion gateway, chat session controller, display preferences, persistence.
    utils/        - Rendering, environment checks, database schema setup.
"""
