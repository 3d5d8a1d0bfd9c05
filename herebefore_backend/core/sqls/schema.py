"""
Database schema definitions
Contains all CREATE TABLE and CREATE INDEX statements
"""

# Table creation statements
CREATE_EPISODES_TABLE = """
    CREATE TABLE IF NOT EXISTS episodes (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL DEFAULT '',
        anchor_date TEXT NOT NULL,
        emotions TEXT NOT NULL DEFAULT '{}',
        prompts TEXT NOT NULL DEFAULT '{}',
        dismissed_kinds TEXT NOT NULL DEFAULT '[]',
        scheduled_notification_ids TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL
    )
"""

CREATE_CHECK_INS_TABLE = """
    CREATE TABLE IF NOT EXISTS check_ins (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        episode_id TEXT NOT NULL REFERENCES episodes(id) ON DELETE CASCADE,
        kind TEXT NOT NULL,
        text TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT,
        UNIQUE (episode_id, kind)
    )
"""

CREATE_EPISODE_NOTES_TABLE = """
    CREATE TABLE IF NOT EXISTS episode_notes (
        id TEXT PRIMARY KEY,
        episode_id TEXT NOT NULL REFERENCES episodes(id) ON DELETE CASCADE,
        text TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
"""

CREATE_CARDS_TABLE = """
    CREATE TABLE IF NOT EXISTS cards (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        text TEXT NOT NULL DEFAULT '',
        color_red REAL NOT NULL DEFAULT 0,
        color_green REAL NOT NULL DEFAULT 0,
        color_blue REAL NOT NULL DEFAULT 0,
        date TEXT,
        image_data BLOB,
        created_at TEXT NOT NULL
    )
"""

# Index creation statements
CREATE_CHECK_INS_EPISODE_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_check_ins_episode
    ON check_ins(episode_id)
"""

CREATE_EPISODE_NOTES_EPISODE_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_episode_notes_episode
    ON episode_notes(episode_id, created_at)
"""

CREATE_CARDS_CREATED_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_cards_created
    ON cards(created_at DESC)
"""

# All table creation statements in order
ALL_TABLES = [
    CREATE_EPISODES_TABLE,
    CREATE_CHECK_INS_TABLE,
    CREATE_EPISODE_NOTES_TABLE,
    CREATE_CARDS_TABLE,
]

# All index creation statements
ALL_INDEXES = [
    CREATE_CHECK_INS_EPISODE_INDEX,
    CREATE_EPISODE_NOTES_EPISODE_INDEX,
    CREATE_CARDS_CREATED_INDEX,
]
