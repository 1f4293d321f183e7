"""SQLite schema for local development.

Mirrors the Supabase tables the bridge reads and writes. In production the
schema is owned by Supabase migrations.
"""

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT,
    full_name TEXT,
    role TEXT NOT NULL DEFAULT 'client',
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS programs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    coach_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    name TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_programs_coach_user
    ON programs(coach_id, user_id);

CREATE TABLE IF NOT EXISTS workouts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    program_id INTEGER,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    workout_type TEXT,
    duration_minutes INTEGER,
    target_tss REAL,
    target_ftp REAL,
    completed INTEGER DEFAULT 0,
    completed_at TEXT,
    external_activity_id TEXT,
    actual_tss REAL,
    energy_kj REAL,
    intensity_factor REAL,
    notes TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_workouts_user_external
    ON workouts(user_id, external_activity_id);

CREATE TABLE IF NOT EXISTS trainerroad_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    local_user_id TEXT NOT NULL UNIQUE,
    cookie_bundle TEXT NOT NULL DEFAULT '',
    is_active INTEGER NOT NULL DEFAULT 1,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

TABLES = ("users", "programs", "workouts", "trainerroad_sessions")
