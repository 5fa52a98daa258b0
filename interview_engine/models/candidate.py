from sqlalchemy import Column, String, DateTime, Text, JSON
from datetime import datetime
from interview_engine.core.database import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)

    # written by the resume extractor
    skills = Column(JSON, default=list)
    experience = Column(Text, nullable=True)
    education = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    def profile(self) -> dict:
        return {
            "skills": list(self.skills or []),
            "experience": self.experience or "",
            "education": self.education or "",
        }


class Recruiter(Base):
    __tablename__ = "recruiters"

    id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, index=True, nullable=False)
    company = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
