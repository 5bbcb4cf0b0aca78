"""
Indexes created after the dumps are loaded.

Applied once after loading, by scripts/init_db.py --indexes or
run_load.py --create-indexes.
"""

POST_LOAD_INDEXES = {
    "release": [
        "CREATE INDEX IF NOT EXISTS idx_release_master ON release (master_id)",
    ],
    "release_label": [
        "CREATE INDEX IF NOT EXISTS idx_release_label ON release_label (release_id)",
    ],
    "release_video": [
        "CREATE INDEX IF NOT EXISTS idx_release_video ON release_video (release_id)",
    ],
    "master_artist": [
        "CREATE INDEX IF NOT EXISTS idx_master_artist_master ON master_artist (master_id)",
        "CREATE INDEX IF NOT EXISTS idx_master_artist_artist ON master_artist (artist_id)",
    ],
}
