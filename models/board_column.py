from datetime import datetime, timezone

from db import db

class BoardColumnModel(db.Model):
    __tablename__ = "board_columns"
    __table_args__ = (db.UniqueConstraint("sprint_id", "title", name = "uq_board_columns_sprint_title"),)

    id = db.Column(db.Integer, primary_key = True)
    sprint_id = db.Column(db.Integer, db.ForeignKey("sprints.id"), nullable = False, index = True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = False)
    # Column title doubles as the status string of the tasks inside it
    title = db.Column(db.String(80), nullable = False)
    order_index = db.Column(db.Integer, nullable = False)
    created_at = db.Column(
        db.DateTime(timezone = True),
        default = lambda: datetime.now(timezone.utc),
        nullable = False
    )
