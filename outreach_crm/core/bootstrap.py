"""
Optional demo data bootstrap, run once at process start when SEED_DEMO_DATA
is enabled. Re-running is harmless: an owner that already has a team is left
alone.
"""

from typing import Optional

from . import dao
from .config import get_demo_user_id
from .db import transaction
from .schema import DEFAULT_TEAM_SETTINGS, ProspectStage, TeamMemberRole, TemplateType
from ..util.logging import logger

DEMO_PROSPECTS = [
    {
        "first_name": "Sarah",
        "last_name": "Connor",
        "company": "Skynet Corp",
        "title": "CTO",
        "source": "LinkedIn",
        "stage": ProspectStage.IDENTIFIED.value,
        "email": "sarah@skynet.com",
        "linkedin_url": "https://linkedin.com/in/sarahconnor",
    },
    {
        "first_name": "John",
        "last_name": "Doe",
        "company": "Acme Inc",
        "title": "VP Sales",
        "source": "Clay",
        "stage": ProspectStage.WARMING.value,
        "email": "john@acme.com",
    },
    {
        "first_name": "Jane",
        "last_name": "Smith",
        "company": "TechStar",
        "title": "CEO",
        "source": "Referral",
        "stage": ProspectStage.FIRST_TOUCH_READY.value,
        "email": "jane@techstar.com",
    },
]

DEMO_TEMPLATES = [
    {
        "name": "General Connection Request",
        "type": TemplateType.CONNECTION_REQUEST.value,
        "content": "Hi {firstName}, saw your post about AI sales tools. Would love to connect!",
    },
    {
        "name": "Value-First Touch",
        "type": TemplateType.FIRST_TOUCH.value,
        "content": "Hi {firstName}, noticed you're hiring SDRs. We built a tool that helps them "
                   "book 2x more meetings. Worth a chat?",
    },
]


def seed_demo_data(owner_id: Optional[str] = None) -> bool:
    """Create the demo team, members, prospects and templates.

    Returns True when data was created, False when the owner already had a team.
    """
    owner_id = owner_id or get_demo_user_id()

    if dao.list_teams_by_owner(owner_id):
        logger.info(f"Demo data already present for '{owner_id}', skipping seed")
        return False

    logger.info("Seeding database...")

    with transaction() as conn:
        team = dao.create_team("Growth Team", owner_id, dict(DEFAULT_TEAM_SETTINGS), conn=conn)
        dao.add_team_member(team.id, owner_id, TeamMemberRole.ADMIN.value, conn=conn)

        for prospect in DEMO_PROSPECTS:
            dao.create_prospect(dict(prospect, team_id=team.id), conn=conn)

        for template in DEMO_TEMPLATES:
            dao.create_template(dict(template, team_id=team.id, created_by_id=owner_id), conn=conn)

    logger.log_operation("bootstrap.seed", "success", {"team_id": team.id, "owner_id": owner_id})
    return True
