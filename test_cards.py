import unittest

from app import create_app
from errors import ErrorKind, RetroError
from models import db, User, Card, CardCategory, Participant, Vote
import cards
import retrospectives
import votes


class CardManagementTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app('testing')
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

        self.moderator = User(username='moderator', email='moderator@example.com')
        self.moderator.set_password('password')
        db.session.add(self.moderator)
        db.session.commit()

        result = retrospectives.create_retrospective("Sprint 1", 3, self.moderator.id)
        self.retro_id = result['retrospective_id']
        self.alice = retrospectives.join_as_participant(result['invite_code'], "alice-session")
        self.bob = retrospectives.join_as_participant(result['invite_code'], "bob-session")

        other = retrospectives.create_retrospective("Other team", 3, self.moderator.id)
        self.other_retro_id = other['retrospective_id']
        self.outsider = retrospectives.join_as_participant(other['invite_code'], "alice-session")

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def test_create_card(self):
        card_id = cards.create_card(self.retro_id, self.alice, "went-well", "Pairing helped")
        card = db.session.get(Card, card_id)
        self.assertEqual(card.category, CardCategory.WENT_WELL)
        self.assertEqual(card.content, "Pairing helped")
        self.assertEqual(card.vote_count, 0)
        self.assertEqual(card.participant_id, self.alice)
        self.assertEqual(card.retrospective_id, self.retro_id)

    def test_create_card_rejects_foreign_participant(self):
        with self.assertRaises(RetroError) as ctx:
            cards.create_card(self.retro_id, self.outsider, "ideas", "Sneaky")
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_REFERENCE)

        with self.assertRaises(RetroError) as ctx:
            cards.create_card(self.retro_id, "no-such-participant", "ideas", "Ghost")
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_REFERENCE)
        self.assertEqual(Card.query.count(), 0)

    def test_create_card_rejects_unknown_category(self):
        with self.assertRaises(RetroError) as ctx:
            cards.create_card(self.retro_id, self.alice, "meh", "Hmm")
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_ARGUMENT)
        self.assertEqual(Card.query.count(), 0)

    def test_only_author_can_update(self):
        card_id = cards.create_card(self.retro_id, self.alice, "ideas", "Ship faster")

        with self.assertRaises(RetroError) as ctx:
            cards.update_card(card_id, self.bob, "Ship slower")
        self.assertEqual(ctx.exception.kind, ErrorKind.FORBIDDEN)
        self.assertEqual(db.session.get(Card, card_id).content, "Ship faster")

        card = cards.update_card(card_id, self.alice, "Ship much faster")
        self.assertEqual(card.content, "Ship much faster")
        self.assertEqual(card.category, CardCategory.IDEAS)
        self.assertEqual(card.participant_id, self.alice)

    def test_update_missing_card(self):
        with self.assertRaises(RetroError) as ctx:
            cards.update_card("missing", self.alice, "x")
        self.assertEqual(ctx.exception.kind, ErrorKind.NOT_FOUND)

    def test_delete_cascades_votes(self):
        card_id = cards.create_card(self.retro_id, self.alice, "went-poorly", "Flaky CI")
        keep_id = cards.create_card(self.retro_id, self.bob, "ideas", "Fix CI")
        votes.toggle_vote(card_id, self.alice)
        votes.toggle_vote(card_id, self.bob)
        votes.toggle_vote(keep_id, self.bob)

        with self.assertRaises(RetroError) as ctx:
            cards.delete_card(card_id, self.bob)
        self.assertEqual(ctx.exception.kind, ErrorKind.FORBIDDEN)
        self.assertIsNotNone(db.session.get(Card, card_id))

        result = cards.delete_card(card_id, self.alice)
        self.assertEqual(result, {'retrospective_id': self.retro_id, 'removed_votes': 2})
        self.assertIsNone(db.session.get(Card, card_id))
        self.assertEqual(Vote.query.filter_by(card_id=card_id).count(), 0)

        bob_votes = votes.get_participant_votes(self.bob, self.retro_id)
        self.assertEqual([v.card_id for v in bob_votes], [keep_id])
        self.assertEqual(votes.get_participant_votes(self.alice, self.retro_id), [])
        self.assertEqual(votes.get_remaining_votes(self.alice, self.retro_id), 3)

    def test_get_by_retrospective_resolves_author_names(self):
        first = cards.create_card(self.retro_id, self.alice, "went-well", "Demo went great")
        cards.create_card(self.retro_id, self.bob, "ideas", "More demos")
        cards.create_card(self.other_retro_id, self.outsider, "ideas", "Elsewhere")

        listed = cards.get_by_retrospective(self.retro_id)
        self.assertEqual(len(listed), 2)
        self.assertEqual(listed[0]['id'], first)
        alice_name = db.session.get(Participant, self.alice).anonymous_name
        self.assertEqual(listed[0]['participant_name'], alice_name)
        self.assertEqual(listed[0]['category'], "went-well")

    def test_broken_author_reference_reads_as_unknown(self):
        db.session.add(Card(
            retrospective_id=self.retro_id,
            participant_id="deleted-participant",
            category=CardCategory.IDEAS,
            content="Orphan",
        ))
        db.session.commit()

        listed = cards.get_by_retrospective(self.retro_id)
        self.assertEqual(listed[0]['participant_name'], cards.UNKNOWN_AUTHOR)


if __name__ == '__main__':
    unittest.main()
