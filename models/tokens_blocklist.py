from datetime import datetime, timezone

from db import db

class TokenBlocklist(db.Model):
    __tablename__ = "token_blocklist"

    id = db.Column(db.Integer, primary_key = True)
    # Unique token id of a logged-out access token
    jti = db.Column(db.String(100), unique = True, nullable = False, index = True)
    # Whose session was closed by this logout
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = True)
    revoked_at = db.Column(
        db.DateTime(timezone = True),
        default = lambda: datetime.now(timezone.utc),
        nullable = False
    )
