import unittest
from unittest import mock

from app import create_app
from errors import ErrorKind, RetroError
from models import db, User, Card, Vote
import cards
import retrospectives
import votes


class VotingTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app('testing')
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

        self.moderator = User(username='moderator', email='moderator@example.com')
        self.moderator.set_password('password')
        db.session.add(self.moderator)
        db.session.commit()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def start(self, budget):
        result = retrospectives.create_retrospective("Sprint 1", budget, self.moderator.id)
        return result['retrospective_id'], result['invite_code']

    def assert_counts_consistent(self, retro_id):
        for card in Card.query.filter_by(retrospective_id=retro_id).all():
            self.assertEqual(card.vote_count, Vote.query.filter_by(card_id=card.id).count())

    def test_sprint_scenario_toggle_on_and_off(self):
        retro_id, code = self.start(2)
        participant = retrospectives.join_as_participant(code, "s1")
        card_id = cards.create_card(retro_id, participant, "ideas", "Ship faster")

        result = votes.toggle_vote(card_id, participant)
        self.assertEqual(result['action'], "added")
        self.assertEqual(result['vote_count'], 1)
        self.assertEqual(db.session.get(Card, card_id).vote_count, 1)

        result = votes.toggle_vote(card_id, participant)
        self.assertEqual(result['action'], "removed")
        self.assertEqual(result['vote_count'], 0)
        self.assertEqual(db.session.get(Card, card_id).vote_count, 0)
        self.assertEqual(Vote.query.count(), 0)

    def test_vote_limit_reached(self):
        retro_id, code = self.start(1)
        participant = retrospectives.join_as_participant(code, "s1")
        card_a = cards.create_card(retro_id, participant, "went-well", "A")
        card_b = cards.create_card(retro_id, participant, "went-poorly", "B")

        self.assertEqual(votes.toggle_vote(card_a, participant)['action'], "added")
        with self.assertRaises(RetroError) as ctx:
            votes.toggle_vote(card_b, participant)
        self.assertEqual(ctx.exception.kind, ErrorKind.VOTE_LIMIT_REACHED)
        self.assertEqual(db.session.get(Card, card_b).vote_count, 0)
        self.assertEqual(len(votes.get_participant_votes(participant, retro_id)), 1)

        # Taking a vote back frees the budget
        votes.toggle_vote(card_a, participant)
        self.assertEqual(votes.toggle_vote(card_b, participant)['action'], "added")

    def test_budget_is_per_retrospective(self):
        retro_id, code = self.start(1)
        other_id, other_code = self.start(1)
        here = retrospectives.join_as_participant(code, "device-1")
        there = retrospectives.join_as_participant(other_code, "device-1")
        card_here = cards.create_card(retro_id, here, "ideas", "Here")
        card_there = cards.create_card(other_id, there, "ideas", "There")

        votes.toggle_vote(card_here, here)
        self.assertEqual(votes.toggle_vote(card_there, there)['action'], "added")

    def test_many_voters_keep_counts_in_sync(self):
        retro_id, code = self.start(3)
        voters = [retrospectives.join_as_participant(code, f"s{i}") for i in range(5)]
        card_ids = [cards.create_card(retro_id, voters[0], "ideas", f"Idea {i}") for i in range(4)]

        for voter in voters:
            for card_id in card_ids[:3]:
                votes.toggle_vote(card_id, voter)
            with self.assertRaises(RetroError):
                votes.toggle_vote(card_ids[3], voter)
            self.assertLessEqual(len(votes.get_participant_votes(voter, retro_id)), 3)

        votes.toggle_vote(card_ids[0], voters[1])
        votes.toggle_vote(card_ids[3], voters[1])

        self.assertEqual(db.session.get(Card, card_ids[0]).vote_count, 4)
        self.assertEqual(db.session.get(Card, card_ids[3]).vote_count, 1)
        self.assert_counts_consistent(retro_id)

    def test_participant_from_other_retrospective_is_rejected(self):
        retro_id, code = self.start(3)
        _, other_code = self.start(3)
        author = retrospectives.join_as_participant(code, "s1")
        outsider = retrospectives.join_as_participant(other_code, "s2")
        card_id = cards.create_card(retro_id, author, "ideas", "Mine")

        with self.assertRaises(RetroError) as ctx:
            votes.toggle_vote(card_id, outsider)
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_REFERENCE)

        with self.assertRaises(RetroError) as ctx:
            votes.toggle_vote(card_id, "nobody")
        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_REFERENCE)
        self.assertEqual(db.session.get(Card, card_id).vote_count, 0)

    def test_concurrent_duplicate_vote_reports_added(self):
        retro_id, code = self.start(3)
        participant = retrospectives.join_as_participant(code, "s1")
        card_id = cards.create_card(retro_id, participant, "ideas", "Ship faster")
        votes.toggle_vote(card_id, participant)

        # The earlier lookup misses, so the insert hits the unique constraint
        with mock.patch("votes._find_vote", return_value=None):
            result = votes.toggle_vote(card_id, participant)

        self.assertEqual(result, {'action': "added", 'vote_count': 1})
        self.assertEqual(db.session.get(Card, card_id).vote_count, 1)
        self.assertEqual(Vote.query.filter_by(card_id=card_id).count(), 1)
        self.assertEqual(votes.get_remaining_votes(participant, retro_id), 2)

    def test_missing_card(self):
        retro_id, code = self.start(3)
        participant = retrospectives.join_as_participant(code, "s1")
        with self.assertRaises(RetroError) as ctx:
            votes.toggle_vote("missing", participant)
        self.assertEqual(ctx.exception.kind, ErrorKind.NOT_FOUND)

    def test_lowered_budget_keeps_existing_votes(self):
        retro_id, code = self.start(3)
        participant = retrospectives.join_as_participant(code, "s1")
        card_ids = [cards.create_card(retro_id, participant, "ideas", f"Idea {i}") for i in range(3)]
        for card_id in card_ids[:2]:
            votes.toggle_vote(card_id, participant)

        retrospectives.update_settings(retro_id, 1, self.moderator.id)
        self.assertEqual(votes.get_remaining_votes(participant, retro_id), 0)
        self.assertEqual(len(votes.get_participant_votes(participant, retro_id)), 2)

        with self.assertRaises(RetroError):
            votes.toggle_vote(card_ids[2], participant)
        self.assertEqual(votes.toggle_vote(card_ids[0], participant)['action'], "removed")

    def test_reconcile_repairs_drifted_counts(self):
        retro_id, code = self.start(3)
        participant = retrospectives.join_as_participant(code, "s1")
        card_id = cards.create_card(retro_id, participant, "ideas", "Idea")
        untouched = cards.create_card(retro_id, participant, "ideas", "Other")
        votes.toggle_vote(card_id, participant)

        db.session.get(Card, card_id).vote_count = 5
        db.session.commit()

        self.assertEqual(votes.reconcile_vote_counts(retro_id), 1)
        self.assertEqual(db.session.get(Card, card_id).vote_count, 1)
        self.assertEqual(db.session.get(Card, untouched).vote_count, 0)
        self.assertEqual(votes.reconcile_vote_counts(), 0)


if __name__ == '__main__':
    unittest.main()
