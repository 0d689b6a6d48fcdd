"""
DATABASE SETUP
==============

Creates the archival tables in Supabase with row-level security, then the
updated_at triggers. Needs the service-role key (SUPABASE_SERVICE_ROLE_KEY);
the anon key the app runs with cannot create tables.

DDL is executed through an `exec_sql(sql text)` Postgres function exposed over
RPC, which has to exist in the project beforehand (create it once from the
Supabase SQL editor).

USAGE:
  python -m chatbot.utils.setup_database
"""

import logging
import sys
from typing import Dict

from chatbot.services.database import ConversationStore, PersistenceResult, Tables
from config import SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL

logger = logging.getLogger("chatbot")


USERS_SQL = f"""
CREATE TABLE IF NOT EXISTS {Tables.USERS} (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  email VARCHAR(255) UNIQUE NOT NULL,
  name VARCHAR(255),
  avatar_url TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

ALTER TABLE {Tables.USERS} ENABLE ROW LEVEL SECURITY;

CREATE POLICY "Users can view own profile" ON {Tables.USERS}
  FOR SELECT USING (auth.uid() = id);

CREATE POLICY "Users can update own profile" ON {Tables.USERS}
  FOR UPDATE USING (auth.uid() = id);

CREATE POLICY "Users can insert own profile" ON {Tables.USERS}
  FOR INSERT WITH CHECK (auth.uid() = id);
"""

CONVERSATIONS_SQL = f"""
CREATE TABLE IF NOT EXISTS {Tables.CONVERSATIONS} (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  user_id UUID REFERENCES {Tables.USERS}(id) ON DELETE CASCADE,
  title VARCHAR(255),
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

ALTER TABLE {Tables.CONVERSATIONS} ENABLE ROW LEVEL SECURITY;

CREATE POLICY "Users can view own conversations" ON {Tables.CONVERSATIONS}
  FOR SELECT USING (auth.uid() = user_id);

CREATE POLICY "Users can create conversations" ON {Tables.CONVERSATIONS}
  FOR INSERT WITH CHECK (auth.uid() = user_id);

CREATE POLICY "Users can update own conversations" ON {Tables.CONVERSATIONS}
  FOR UPDATE USING (auth.uid() = user_id);
"""

MESSAGES_SQL = f"""
CREATE TABLE IF NOT EXISTS {Tables.MESSAGES} (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  conversation_id UUID REFERENCES {Tables.CONVERSATIONS}(id) ON DELETE CASCADE,
  role VARCHAR(50) NOT NULL CHECK (role IN ('user', 'assistant')),
  content TEXT NOT NULL,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

ALTER TABLE {Tables.MESSAGES} ENABLE ROW LEVEL SECURITY;

CREATE POLICY "Users can view messages in own conversations" ON {Tables.MESSAGES}
  FOR SELECT USING (
    EXISTS (
      SELECT 1 FROM {Tables.CONVERSATIONS}
      WHERE {Tables.CONVERSATIONS}.id = {Tables.MESSAGES}.conversation_id
      AND {Tables.CONVERSATIONS}.user_id = auth.uid()
    )
  );

CREATE POLICY "Users can insert messages in own conversations" ON {Tables.MESSAGES}
  FOR INSERT WITH CHECK (
    EXISTS (
      SELECT 1 FROM {Tables.CONVERSATIONS}
      WHERE {Tables.CONVERSATIONS}.id = {Tables.MESSAGES}.conversation_id
      AND {Tables.CONVERSATIONS}.user_id = auth.uid()
    )
  );
"""

TRIGGERS_SQL = f"""
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
  NEW.updated_at = NOW();
  RETURN NEW;
END;
$$ language 'plpgsql';

DROP TRIGGER IF EXISTS update_users_updated_at ON {Tables.USERS};
CREATE TRIGGER update_users_updated_at
  BEFORE UPDATE ON {Tables.USERS}
  FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

DROP TRIGGER IF EXISTS update_conversations_updated_at ON {Tables.CONVERSATIONS};
CREATE TRIGGER update_conversations_updated_at
  BEFORE UPDATE ON {Tables.CONVERSATIONS}
  FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""

# Order matters: foreign keys point backwards.
SCHEMA_STEPS = (
    (Tables.USERS, USERS_SQL),
    (Tables.CONVERSATIONS, CONVERSATIONS_SQL),
    (Tables.MESSAGES, MESSAGES_SQL),
    ("triggers", TRIGGERS_SQL),
)


def initialize_database(store: ConversationStore) -> Dict[str, PersistenceResult]:
    """
    Run every schema step through the exec_sql RPC.

    A failing step is logged and the remaining steps still run; "already exists"
    errors (policies re-created on a second run) count as success.

    Returns:
        step name -> PersistenceResult
    """
    results = {}
    if not store.enabled:
        logger.info("Supabase not configured - skipping database initialization")
        return {name: PersistenceResult.disabled() for name, _ in SCHEMA_STEPS}

    for name, sql in SCHEMA_STEPS:
        logger.info("Creating %s...", name)
        result = store.run(
            f"creating {name}",
            lambda sql=sql: store.client.rpc("exec_sql", {"sql": sql}).execute(),
        )
        if not result.ok and "already exists" in (result.error or ""):
            result = PersistenceResult.success()
        if result.ok:
            logger.info("%s ready", name)
        results[name] = result
    return results


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)-8s | %(message)s")

    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        logger.error("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required to set up the database")
        logger.error("Find them in the Supabase dashboard under Settings > API")
        return 1

    store = ConversationStore(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    results = initialize_database(store)
    failed = [name for name, result in results.items() if not result.ok]
    if failed:
        logger.error("Database setup incomplete, failed steps: %s", ", ".join(failed))
        return 1

    connection = store.check_connection()
    if not connection.ok:
        logger.error("Tables created but the connection check failed: %s", connection.error)
        return 1

    logger.info("Database setup completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
