"""
Chirp — A Small Social Network Backend
========================================
Accounts, text + image posts, likes, comments and follow relationships,
served as a JSON API to a plain browser client.

Package layout::

    chirp/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Input limits, upload rules
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # users, follows, posts, post_likes, comments
    ├── services/
    │   ├── account_service.py  # Register, login, profiles, search
    │   ├── graph_service.py    # Follow / unfollow
    │   ├── post_service.py     # Posts, likes, comments
    │   ├── feed_service.py     # Feed + per-user timelines
    │   ├── upload_service.py   # Image validation and disk storage
    │   ├── serializers.py      # ORM → JSON dicts
    │   └── errors.py           # Domain error taxonomy
    └── api/
        ├── main.py        # FastAPI app
        ├── auth.py        # Register / login → JWT
        ├── deps.py        # Engine, config, current user
        ├── errors.py      # Error → JSON envelopes
        └── routes/        # /posts and /users endpoints
"""

__version__ = "0.1.0"
