"""
UTILITIES PACKAGE
=================

Helpers that sit around the chat flow (no HTTP endpoints, no conversation state):

  render         - RenderContext palette and transcript rendering for the terminal.
  env_check      - pre-development checks and a gateway connectivity probe.
  setup_database - creates the Supabase tables, policies and triggers.
"""
