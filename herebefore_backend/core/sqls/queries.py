"""
Database query SQL statements
Contains all SELECT, INSERT, UPDATE, DELETE statements
"""

# Episodes queries
INSERT_EPISODE = """
    INSERT INTO episodes (
        id, title, anchor_date, emotions, prompts,
        dismissed_kinds, scheduled_notification_ids, created_at
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""

UPDATE_EPISODE = """
    UPDATE episodes
    SET title = ?, anchor_date = ?, emotions = ?, prompts = ?,
        dismissed_kinds = ?, scheduled_notification_ids = ?
    WHERE id = ?
"""

UPDATE_EPISODE_NOTIFICATION_IDS = """
    UPDATE episodes
    SET scheduled_notification_ids = ?
    WHERE id = ?
"""

SELECT_EPISODE_DISMISSED_KINDS = """
    SELECT dismissed_kinds FROM episodes
    WHERE id = ?
"""

UPDATE_EPISODE_DISMISSED_KINDS = """
    UPDATE episodes
    SET dismissed_kinds = ?
    WHERE id = ?
"""

DELETE_EPISODE = """
    DELETE FROM episodes
    WHERE id = ?
"""

SELECT_EPISODE_BY_ID = """
    SELECT * FROM episodes
    WHERE id = ?
"""

SELECT_EPISODES = """
    SELECT * FROM episodes
"""

# Check-in queries
INSERT_CHECK_IN = """
    INSERT INTO check_ins (episode_id, kind, text, created_at, updated_at)
    VALUES (?, ?, ?, ?, ?)
"""

UPDATE_CHECK_IN = """
    UPDATE check_ins
    SET text = ?, updated_at = ?
    WHERE episode_id = ? AND kind = ?
"""

DELETE_CHECK_IN = """
    DELETE FROM check_ins
    WHERE episode_id = ? AND kind = ?
"""

SELECT_CHECK_INS_BY_EPISODE = """
    SELECT * FROM check_ins
    WHERE episode_id = ?
    ORDER BY id ASC
"""

# Episode note queries
INSERT_NOTE = """
    INSERT INTO episode_notes (id, episode_id, text, created_at)
    VALUES (?, ?, ?, ?)
"""

UPDATE_NOTE = """
    UPDATE episode_notes
    SET text = ?
    WHERE id = ?
"""

DELETE_NOTE = """
    DELETE FROM episode_notes
    WHERE id = ?
"""

SELECT_NOTES_BY_EPISODE = """
    SELECT * FROM episode_notes
    WHERE episode_id = ?
    ORDER BY created_at ASC
"""

# Card queries
INSERT_CARD = """
    INSERT INTO cards (
        id, type, text, color_red, color_green, color_blue,
        date, image_data, created_at
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

UPDATE_CARD = """
    UPDATE cards
    SET type = ?, text = ?, color_red = ?, color_green = ?, color_blue = ?,
        date = ?, image_data = ?
    WHERE id = ?
"""

DELETE_CARD = """
    DELETE FROM cards
    WHERE id = ?
"""

SELECT_CARDS = """
    SELECT * FROM cards
    ORDER BY created_at DESC
"""

PRAGMA_FOREIGN_KEYS_ON = "PRAGMA foreign_keys = ON"
BEGIN_IMMEDIATE = "BEGIN IMMEDIATE"
