import json
import unittest

from app import create_app
from models import db, User
import cards
import retrospectives
import votes
from export_import import export_retrospective, export_to_json, export_to_text


class ExportTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app('testing')
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

        moderator = User(username='moderator', email='moderator@example.com')
        moderator.set_password('password')
        db.session.add(moderator)
        db.session.commit()

        result = retrospectives.create_retrospective("Sprint 1", 3, moderator.id)
        self.retro = retrospectives.get_by_id(result['retrospective_id'])
        self.alice = retrospectives.join_as_participant(result['invite_code'], "s1")
        self.bob = retrospectives.join_as_participant(result['invite_code'], "s2")

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def test_cards_grouped_and_ranked_by_votes(self):
        quiet = cards.create_card(self.retro.id, self.alice, "ideas", "Quiet idea")
        loud = cards.create_card(self.retro.id, self.bob, "ideas", "Loud idea")
        cards.create_card(self.retro.id, self.alice, "went-well", "Demo")
        votes.toggle_vote(loud, self.alice)
        votes.toggle_vote(loud, self.bob)
        votes.toggle_vote(quiet, self.bob)

        data = export_retrospective(self.retro)
        self.assertEqual(data['retrospective']['name'], "Sprint 1")
        self.assertEqual(data['participant_count'], 3)
        self.assertEqual(data['total_votes'], 3)
        self.assertEqual([c['id'] for c in data['categories']['ideas']], [loud, quiet])
        self.assertEqual(data['categories']['ideas'][0]['vote_count'], 2)
        self.assertEqual(len(data['categories']['went-well']), 1)
        self.assertEqual(data['categories']['went-poorly'], [])

        self.assertEqual(json.loads(export_to_json(self.retro))['total_votes'], 3)

    def test_text_export(self):
        card_id = cards.create_card(self.retro.id, self.alice, "went-poorly", "Flaky CI")
        votes.toggle_vote(card_id, self.bob)

        text = export_to_text(self.retro)
        self.assertTrue(text.startswith("# Sprint 1\n"))
        self.assertIn("**Status:** Active", text)
        self.assertIn("## Went Poorly", text)
        self.assertIn("- Flaky CI (1 vote,", text)
        self.assertIn("_No cards._", text)

        retrospectives.end_retrospective(self.retro.id, self.retro.moderator_id)
        self.assertIn("**Status:** Ended", export_to_text(self.retro))


if __name__ == '__main__':
    unittest.main()
