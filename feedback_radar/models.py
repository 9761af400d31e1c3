from sqlalchemy import Column, Integer, BigInteger, String, Text

from feedback_radar.db import Base


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(Text, nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(BigInteger, nullable=False, index=True)  # epoch ms
    sentiment = Column(String(16), nullable=True, index=True)
    urgency = Column(Integer, nullable=True)
    tags = Column(Text, nullable=True)  # JSON array
    summary = Column(Text, nullable=True)
    ai_model = Column(String(128), nullable=True)
    ai_latency_ms = Column(Integer, nullable=True)
    analysis_status = Column(String(16), nullable=False, default="pending")
    analysis_error = Column(Text, nullable=True)
