"""
RUN SCRIPT - Start the chatbot server
=====================================

PURPOSE:
  Single entry point to start the backend that proxies chat requests to OpenRouter.

WHAT IT DOES:
  - Imports the FastAPI app from chatbot.main.
  - Runs it with uvicorn on host 0.0.0.0 and the development port from config (3333 by default).
  - reload=True means any change to Python files will restart the server (handy for development).

USAGE:
  python run.py

  Then chat from the terminal with `python chat_cli.py`, or POST to /api/chat from another app.
  API docs: http://localhost:3333/docs

NOTE:
  Before running, set OPENROUTER_API_KEY in .env (see .env.example).
  `python -m chatbot.utils.env_check` verifies the setup.
"""

import uvicorn

from config import PORT


def main():
    uvicorn.run(
        "chatbot.main:app",   # String path to the FastAPI app instance (module:variable).
        host="0.0.0.0",       # Listen on all network interfaces so other devices can connect.
        port=PORT,            # HTTP port; set PORT in .env if 3333 is taken.
        reload=True           # Auto-restart when .py files change (useful during development).
    )


# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    main()
