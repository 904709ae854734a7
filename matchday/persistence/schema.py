"""
SQLite schema for users, moderation and canonical football entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def users_schema() -> str:
    """role: USER | ADMIN."""
    return """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'USER',
        created_at TEXT NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_users_username ON users(username);
    """


def submissions_schema() -> str:
    """
    status: PENDING | APPROVED | REJECTED.
    changes_json: NULL when no payload was sent; the text 'null' for an explicit JSON null.
    """
    return """
    CREATE TABLE IF NOT EXISTS submissions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_by_id INTEGER NOT NULL,
        target_type TEXT NOT NULL,
        operation TEXT NOT NULL,
        target_id INTEGER,
        changes_json TEXT,
        status TEXT NOT NULL DEFAULT 'PENDING',
        created_at TEXT NOT NULL,
        updated_at TEXT,
        FOREIGN KEY (created_by_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_submissions_status_created ON submissions(status, created_at);
    CREATE INDEX IF NOT EXISTS ix_submissions_created_by ON submissions(created_by_id);
    """


def reviews_schema() -> str:
    """One review per submission: the decision record."""
    return """
    CREATE TABLE IF NOT EXISTS reviews (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        reviewer_id INTEGER NOT NULL,
        submission_id INTEGER NOT NULL,
        decision TEXT NOT NULL,
        comment TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (reviewer_id) REFERENCES users(id),
        FOREIGN KEY (submission_id) REFERENCES submissions(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_reviews_submission ON reviews(submission_id);
    """


def teams_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        country TEXT NOT NULL,
        stadium TEXT,
        logo_url TEXT,
        founded INTEGER
    );
    """


def leagues_schema() -> str:
    """competition_type: DomesticLeague | DomesticCup | InternationalClub | InternationalNational."""
    return """
    CREATE TABLE IF NOT EXISTS leagues (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        country TEXT NOT NULL,
        logo_url TEXT,
        competition_type TEXT
    );
    """


def players_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS players (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        nationality TEXT NOT NULL,
        position TEXT NOT NULL,
        team_id INTEGER NOT NULL,
        date_of_birth TEXT,
        jersey_number INTEGER,
        image_url TEXT,
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_players_team ON players(team_id);
    """


def matches_schema() -> str:
    """status: Scheduled | Live | Finished | Canceled | Postponed | Suspended. Scores NULL until kick-off."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        league_id INTEGER NOT NULL,
        home_team_id INTEGER NOT NULL,
        away_team_id INTEGER NOT NULL,
        match_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Scheduled',
        home_score INTEGER,
        away_score INTEGER,
        stadium TEXT,
        round TEXT,
        is_cup INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (league_id) REFERENCES leagues(id),
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_matches_league_status ON matches(league_id, status);
    CREATE INDEX IF NOT EXISTS ix_matches_home ON matches(home_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_away ON matches(away_team_id);
    CREATE INDEX IF NOT EXISTS ix_matches_date ON matches(match_date);
    """


def match_events_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS match_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        player_id INTEGER NOT NULL,
        minute INTEGER NOT NULL,
        type TEXT NOT NULL,
        assisting_player_id INTEGER,
        player_in_id INTEGER,
        player_out_id INTEGER,
        FOREIGN KEY (match_id) REFERENCES matches(id),
        FOREIGN KEY (player_id) REFERENCES players(id),
        FOREIGN KEY (assisting_player_id) REFERENCES players(id),
        FOREIGN KEY (player_in_id) REFERENCES players(id),
        FOREIGN KEY (player_out_id) REFERENCES players(id)
    );
    CREATE INDEX IF NOT EXISTS ix_match_events_match ON match_events(match_id);
    """


def player_match_stats_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS player_match_stats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        player_id INTEGER NOT NULL,
        match_id INTEGER NOT NULL,
        minutes_played INTEGER NOT NULL DEFAULT 0,
        goals INTEGER NOT NULL DEFAULT 0,
        assists INTEGER NOT NULL DEFAULT 0,
        shots INTEGER NOT NULL DEFAULT 0,
        shots_on_target INTEGER NOT NULL DEFAULT 0,
        passes INTEGER NOT NULL DEFAULT 0,
        tackles INTEGER NOT NULL DEFAULT 0,
        yellow_cards INTEGER NOT NULL DEFAULT 0,
        red_cards INTEGER NOT NULL DEFAULT 0,
        rating REAL,
        FOREIGN KEY (player_id) REFERENCES players(id),
        FOREIGN KEY (match_id) REFERENCES matches(id)
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_player_match_stats_player_match ON player_match_stats(player_id, match_id);
    """


def player_season_stats_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS player_season_stats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        player_id INTEGER NOT NULL,
        season TEXT NOT NULL,
        team_id INTEGER,
        league_id INTEGER,
        appearances INTEGER NOT NULL DEFAULT 0,
        goals INTEGER NOT NULL DEFAULT 0,
        assists INTEGER NOT NULL DEFAULT 0,
        minutes_played INTEGER NOT NULL DEFAULT 0,
        yellow_cards INTEGER NOT NULL DEFAULT 0,
        red_cards INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (player_id) REFERENCES players(id),
        FOREIGN KEY (team_id) REFERENCES teams(id),
        FOREIGN KEY (league_id) REFERENCES leagues(id)
    );
    CREATE INDEX IF NOT EXISTS ix_player_season_stats_player ON player_season_stats(player_id);
    """


def transfers_schema() -> str:
    """transfer_type: Permanent | Loan | Free. from_team_id NULL for free agents."""
    return """
    CREATE TABLE IF NOT EXISTS transfers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        player_id INTEGER NOT NULL,
        from_team_id INTEGER,
        to_team_id INTEGER NOT NULL,
        transfer_date TEXT NOT NULL,
        transfer_type TEXT NOT NULL,
        transfer_fee REAL,
        FOREIGN KEY (player_id) REFERENCES players(id),
        FOREIGN KEY (from_team_id) REFERENCES teams(id),
        FOREIGN KEY (to_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_transfers_player ON transfers(player_id);
    """


def trophies_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS trophies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        year INTEGER NOT NULL
    );
    """


def player_trophies_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS player_trophies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        player_id INTEGER NOT NULL,
        trophy_id INTEGER NOT NULL,
        season TEXT NOT NULL,
        FOREIGN KEY (player_id) REFERENCES players(id),
        FOREIGN KEY (trophy_id) REFERENCES trophies(id)
    );
    CREATE INDEX IF NOT EXISTS ix_player_trophies_player ON player_trophies(player_id);
    """


def odds_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS odds (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        provider TEXT NOT NULL,
        home_win_odds REAL NOT NULL,
        draw_odds REAL NOT NULL,
        away_win_odds REAL NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(id)
    );
    CREATE INDEX IF NOT EXISTS ix_odds_match ON odds(match_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Referenced tables come before their dependents."""
    return "\n".join([
        users_schema(),
        submissions_schema(),
        reviews_schema(),
        teams_schema(),
        leagues_schema(),
        players_schema(),
        matches_schema(),
        match_events_schema(),
        player_match_stats_schema(),
        player_season_stats_schema(),
        transfers_schema(),
        trophies_schema(),
        player_trophies_schema(),
        odds_schema(),
    ])
