"""Default reference data and the initial admin account."""

import logging

from sqlalchemy.orm import Session

from app.config import Settings
from app.middleware.auth import hash_password
from app.models.grade import Grade
from app.models.resource_type import ResourceType
from app.models.subject import Subject
from app.models.tag import Tag
from app.models.user import User

logger = logging.getLogger(__name__)

MB = 1024 * 1024

DEFAULT_SUBJECTS = [
    ("Mathematics", "#EF4444", "Mathematical concepts and problem solving"),
    ("Science", "#10B981", "Scientific principles and experiments"),
    ("English", "#3B82F6", "English language and literature"),
    ("History", "#F59E0B", "Historical events and social studies"),
    ("Geography", "#8B5CF6", "Geographical concepts and world studies"),
    ("Computer Science", "#06B6D4", "Programming and technology"),
    ("Art", "#EC4899", "Creative arts and design"),
    ("Physical Education", "#84CC16", "Sports and physical activities"),
]

# (name, extensions, icon, max size)
DEFAULT_RESOURCE_TYPES = [
    ("Document", "pdf,doc,docx,txt", "document", 100 * MB),
    ("Presentation", "ppt,pptx,key", "presentation", 100 * MB),
    ("Video", "mp4,avi,mov,wmv,flv,mkv,webm", "video", 500 * MB),
    ("Image", "jpg,jpeg,png,gif,bmp", "image", 50 * MB),
    ("Archive", "zip,rar,7z,tar,gz", "archive", 100 * MB),
    ("Spreadsheet", "xls,xlsx,csv", "spreadsheet", 100 * MB),
    ("Audio", "mp3,wav,ogg,aac", "audio", 100 * MB),
]

DEFAULT_TAGS = [
    ("Worksheet", "#F59E0B"),
    ("Lesson Plan", "#3B82F6"),
    ("Assessment", "#EF4444"),
    ("Homework", "#8B5CF6"),
    ("Project", "#10B981"),
    ("Revision", "#06B6D4"),
    ("Reading", "#EC4899"),
    ("Experiment", "#84CC16"),
    ("Interactive", "#F97316"),
    ("Teacher Guide", "#64748B"),
]


def _missing(db: Session, column, values: list[str]) -> set[str]:
    existing = {row[0] for row in db.query(column).filter(column.in_(values)).all()}
    return set(values) - existing


def seed_reference_data(db: Session) -> int:
    """Insert any default grade, subject, type or tag that is not there yet."""
    added = 0

    levels = [f"Grade {n}" for n in range(1, 13)]
    missing = _missing(db, Grade.grade_level, levels)
    for n in range(1, 13):
        level = f"Grade {n}"
        if level in missing:
            db.add(Grade(
                grade_level=level,
                grade_number=n,
                description=f"Educational resources for Grade {n} students",
            ))
            added += 1

    missing = _missing(db, Subject.subject_name, [s[0] for s in DEFAULT_SUBJECTS])
    for name, color, description in DEFAULT_SUBJECTS:
        if name in missing:
            db.add(Subject(subject_name=name, color=color, description=description))
            added += 1

    missing = _missing(db, ResourceType.type_name, [t[0] for t in DEFAULT_RESOURCE_TYPES])
    for name, extensions, icon, max_size in DEFAULT_RESOURCE_TYPES:
        if name in missing:
            db.add(ResourceType(
                type_name=name,
                allowed_extensions=extensions,
                icon=icon,
                max_file_size=max_size,
                description=f"{name} files",
            ))
            added += 1

    missing = _missing(db, Tag.tag_name, [t[0] for t in DEFAULT_TAGS])
    for name, color in DEFAULT_TAGS:
        if name in missing:
            db.add(Tag(tag_name=name, color=color, description=f"{name} related resources"))
            added += 1

    db.commit()
    return added


def seed_admin(db: Session, settings: Settings) -> User:
    """Get or create the initial admin account."""
    email = settings.ADMIN_EMAIL.strip().lower()
    admin = db.query(User).filter(User.email == email).first()
    if not admin:
        admin = User(
            name=settings.ADMIN_NAME,
            email=email,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role="admin",
            organization="System",
            designation="Administrator",
            status="active",
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("Created initial admin account %s", admin.email)
    return admin


def seed_defaults(db: Session, settings: Settings) -> None:
    seed_admin(db, settings)
    if settings.SEED_DEFAULTS:
        added = seed_reference_data(db)
        if added:
            logger.info("Seeded %d default reference rows", added)
