"""
Export utilities for retrospective results.
"""

import json
from datetime import datetime
from typing import Dict, Any

from cards import get_by_retrospective
from models import CardCategory, Participant, Retrospective, Vote

CATEGORY_TITLES = {
    CardCategory.WENT_WELL.value: "Went Well",
    CardCategory.WENT_POORLY.value: "Went Poorly",
    CardCategory.IDEAS.value: "Ideas",
}


def export_retrospective(retrospective: Retrospective) -> Dict[str, Any]:
    """
    Export a retrospective's results as a dictionary.

    Args:
        retrospective: Retrospective to export

    Returns:
        Dictionary with the session, its participant count and cards grouped
        by category, most voted first
    """
    export_data = {
        'version': '1.0',
        'exported_at': datetime.utcnow().isoformat(),
        'retrospective': {
            'id': retrospective.id,
            'name': retrospective.name,
            'invite_code': retrospective.invite_code,
            'votes_per_participant': retrospective.votes_per_participant,
            'is_active': retrospective.is_active,
            'created_at': retrospective.created_at.isoformat(),
            'ended_at': retrospective.ended_at.isoformat() if retrospective.ended_at else None,
        },
        'participant_count': Participant.query.filter_by(retrospective_id=retrospective.id).count(),
        'total_votes': Vote.query.filter_by(retrospective_id=retrospective.id).count(),
        'categories': {value: [] for value in CardCategory.values()},
    }

    for card in get_by_retrospective(retrospective.id):
        export_data['categories'][card['category']].append({
            'id': card['id'],
            'content': card['content'],
            'author': card['participant_name'],
            'vote_count': card['vote_count'],
        })

    # Stable sort keeps creation order among ties
    for cards in export_data['categories'].values():
        cards.sort(key=lambda c: c['vote_count'], reverse=True)

    return export_data


def export_to_json(retrospective: Retrospective) -> str:
    """Export retrospective results as JSON string."""
    return json.dumps(export_retrospective(retrospective), indent=2)


def export_to_text(retrospective: Retrospective) -> str:
    """Export retrospective results as formatted text."""
    data = export_retrospective(retrospective)
    status = "Active" if retrospective.is_active else "Ended"
    text = f"# {retrospective.name}\n\n"
    text += f"**Created:** {retrospective.created_at.strftime('%Y-%m-%d %H:%M:%S')}\n"
    text += f"**Status:** {status}\n"
    text += f"**Participants:** {data['participant_count']}\n"
    text += f"**Votes cast:** {data['total_votes']}\n"

    for category, cards in data['categories'].items():
        text += f"\n## {CATEGORY_TITLES[category]}\n\n"
        if not cards:
            text += "_No cards._\n"
            continue
        for card in cards:
            votes = card['vote_count']
            text += f"- {card['content']} ({votes} vote{'s' if votes != 1 else ''}, {card['author']})\n"

    return text
