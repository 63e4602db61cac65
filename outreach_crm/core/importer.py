"""
Bulk prospect import with duplicate detection.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from . import dao
from .errors import UnauthorizedError, ValidationError
from .schema import ProspectStage
from ..util.logging import logger


@dataclass
class ImportResult:
    imported: int
    duplicates: int

    def to_dict(self) -> Dict[str, int]:
        return {"imported": self.imported, "duplicates": self.duplicates}


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def import_prospects(team_id: int, source: str, rows: Iterable[Dict[str, Any]],
                     acting_user_id: Optional[str]) -> ImportResult:
    """Create IDENTIFIED prospects for every row that is not already known.

    A row is a duplicate when its email (case-insensitive) or LinkedIn URL
    matches a prospect already in the team or an earlier row of the batch.
    """
    if not acting_user_id or not acting_user_id.strip():
        raise UnauthorizedError()
    if not source or not source.strip():
        raise ValidationError("source cannot be empty", field="source")

    known_emails, known_linkedin = dao.find_prospect_identities(team_id)

    to_create: List[Dict[str, Any]] = []
    duplicates = 0
    for row in rows:
        email = _normalize(row.get('email'))
        linkedin_url = _normalize(row.get('linkedin_url'))

        if (email and email in known_emails) or (linkedin_url and linkedin_url in known_linkedin):
            duplicates += 1
            continue

        if email:
            known_emails.add(email)
        if linkedin_url:
            known_linkedin.add(linkedin_url)

        to_create.append({
            'team_id': team_id,
            'first_name': row['first_name'],
            'last_name': row['last_name'],
            'email': row.get('email'),
            'company': row['company'],
            'title': row['title'],
            'source': source,
            'linkedin_url': row.get('linkedin_url'),
            'twitter_handle': row.get('twitter_handle'),
            'stage': ProspectStage.IDENTIFIED.value,
        })

    created = dao.create_prospects_bulk(to_create) if to_create else []

    result = ImportResult(imported=len(created), duplicates=duplicates)
    logger.log_import(team_id, source, result.imported, result.duplicates, acting_user_id)
    return result
