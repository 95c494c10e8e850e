"""
Tests for the status graph, transition table and guard
"""

from types import SimpleNamespace

import pytest

from homestay import workflow
from homestay.exceptions import AuthenticationRequired, Forbidden, InvalidTransition


def user(role, pk=1, district='Shimla', authenticated=True):
    return SimpleNamespace(pk=pk, role=role, district=district, is_authenticated=authenticated)


def application(status, owner_id=1, district='Shimla'):
    return SimpleNamespace(pk=10, status=status, owner_id=owner_id, district=district)


class TestStatusGraph:

    def test_every_canonical_status_has_an_entry(self):
        assert set(workflow.STATUS_GRAPH) == set(workflow.CANONICAL_STATUSES)

    def test_every_transition_rule_follows_a_graph_edge(self):
        for rule in workflow.TRANSITION_RULES:
            for source in rule.sources:
                for target in rule.targets:
                    assert workflow.is_permitted_edge(source, target), rule

    def test_terminal_statuses(self):
        assert workflow.STATUS_GRAPH[workflow.REJECTED] == frozenset()
        assert workflow.STATUS_GRAPH[workflow.APPROVED] == frozenset([workflow.APPROVED])
        assert not workflow.is_permitted_edge(workflow.APPROVED, workflow.SUBMITTED)

    def test_every_status_has_a_stage(self):
        assert set(workflow.STAGE_FOR_STATUS) == set(workflow.CANONICAL_STATUSES)

    def test_connected_walk(self):
        assert workflow.is_connected_walk([
            ('draft', 'submitted'),
            ('submitted', 'under_scrutiny'),
            ('under_scrutiny', 'reverted_to_applicant'),
            ('reverted_to_applicant', 'submitted'),
        ])
        # Gap between rows
        assert not workflow.is_connected_walk([('draft', 'submitted'), ('under_scrutiny', 'forwarded_to_dtdo')])
        # Not an edge
        assert not workflow.is_connected_walk([('draft', 'approved')])

    def test_legacy_aliases_in_walk(self):
        assert workflow.is_connected_walk([('draft', 'pending'), ('submitted', 'under_scrutiny')])


class TestStatusAliases:

    @pytest.mark.parametrize('legacy, canonical', list(workflow.LEGACY_STATUS_ALIASES.items()))
    def test_aliases_resolve_to_canonical(self, legacy, canonical):
        assert workflow.normalize_status(legacy) == canonical
        assert canonical in workflow.CANONICAL_STATUSES

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            workflow.normalize_status('archived')

    def test_stored_status_values(self):
        assert set(workflow.stored_status_values(workflow.SUBMITTED)) == {'submitted', 'pending'}
        assert workflow.stored_status_values(workflow.DRAFT) == ['draft']


class TestPermissions:

    def test_is_permitted(self):
        assert workflow.is_permitted(workflow.DEALING_ASSISTANT, 'submitted', 'start_scrutiny')
        assert workflow.is_permitted(workflow.DEALING_ASSISTANT, 'pending', 'start_scrutiny')
        assert not workflow.is_permitted(workflow.PROPERTY_OWNER, 'submitted', 'start_scrutiny')
        assert not workflow.is_permitted(workflow.DEALING_ASSISTANT, 'draft', 'start_scrutiny')

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            workflow.get_rule('teleport')


class TestAuthorize:

    def test_anonymous(self):
        with pytest.raises(AuthenticationRequired):
            workflow.authorize(user(workflow.PROPERTY_OWNER, authenticated=False), application('draft'), 'submit')

    def test_wrong_role(self):
        with pytest.raises(Forbidden):
            workflow.authorize(user(workflow.PROPERTY_OWNER), application('submitted'), 'start_scrutiny')

    def test_not_the_owner(self):
        with pytest.raises(Forbidden):
            workflow.authorize(user(workflow.PROPERTY_OWNER, pk=2), application('draft', owner_id=1), 'submit')

    def test_other_district(self):
        with pytest.raises(Forbidden) as excinfo:
            workflow.authorize(
                user(workflow.DEALING_ASSISTANT, district='Kullu'), application('submitted'), 'start_scrutiny',
            )
        assert 'district' in excinfo.value.message

    def test_district_checked_before_status(self):
        with pytest.raises(Forbidden):
            workflow.authorize(user(workflow.DEALING_ASSISTANT, district='Kullu'), application('draft'), 'start_scrutiny')

    def test_wrong_status(self):
        with pytest.raises(InvalidTransition) as excinfo:
            workflow.authorize(user(workflow.DEALING_ASSISTANT), application('draft'), 'start_scrutiny')
        assert excinfo.value.status_code == 400
        assert excinfo.value.extra == {'status': 'draft'}

    def test_state_roles_are_not_district_scoped(self):
        rule = workflow.authorize(
            user(workflow.STATE_OFFICER, district=''), application('payment_pending', district='Kullu'),
            'final_approve',
        )
        assert rule.target == workflow.APPROVED

    def test_returns_rule(self):
        rule = workflow.authorize(user(workflow.PROPERTY_OWNER), application('draft'), 'submit')
        assert rule.action == 'submit'
        assert rule.target == workflow.SUBMITTED


class TestRemarks:

    def test_whitespace_only_remarks_are_missing(self):
        rule = workflow.get_rule('forward_to_dtdo')
        with pytest.raises(InvalidTransition) as excinfo:
            workflow.clean_remarks(rule, '   \n\t ')
        assert excinfo.value.message == 'Scrutiny remarks are required before forwarding.'

    def test_minimum_length(self):
        rule = workflow.get_rule('send_back')
        with pytest.raises(InvalidTransition):
            workflow.clean_remarks(rule, '  too short ')
        assert workflow.clean_remarks(rule, ' Fix the water bill ') == 'Fix the water bill'

    def test_optional_remarks(self):
        rule = workflow.get_rule('start_scrutiny')
        assert workflow.clean_remarks(rule, '   ') is None
        assert workflow.clean_remarks(rule, None) is None


class TestReviewAndInspection:

    @pytest.mark.parametrize('role, decision, action', [
        (workflow.DISTRICT_TOURISM_OFFICER, 'approve', 'verify_for_payment'),
        (workflow.DISTRICT_OFFICER, 'reject', 'review_reject_district'),
        (workflow.STATE_OFFICER, 'approve', 'final_approve'),
        (workflow.STATE_OFFICER, 'reject', 'final_reject'),
    ])
    def test_resolve_review_action(self, role, decision, action):
        assert workflow.resolve_review_action(role, decision) == action

    @pytest.mark.parametrize('role', [workflow.ADMIN, workflow.SUPER_ADMIN, workflow.DEALING_ASSISTANT])
    def test_review_is_for_district_and_state_officers(self, role):
        with pytest.raises(Forbidden):
            workflow.resolve_review_action(role, 'approve')

    def test_invalid_review_decision(self):
        with pytest.raises(InvalidTransition):
            workflow.resolve_review_action(workflow.STATE_OFFICER, 'maybe')

    def test_owner_cannot_review(self):
        with pytest.raises(Forbidden):
            workflow.resolve_review_action(workflow.PROPERTY_OWNER, 'approve')

    def test_clean_inspection(self):
        assert workflow.resolve_inspection_outcome('approved') == (workflow.PAYMENT_PENDING, None, None)

    def test_rejection_needs_issues(self):
        with pytest.raises(InvalidTransition):
            workflow.resolve_inspection_outcome('rejected', issues_found='  ', notes='')

    def test_corrections_with_notes(self):
        target, event, issues = workflow.resolve_inspection_outcome(
            'corrections_needed', notes=' Fire extinguisher missing ',
        )
        assert target == workflow.SENT_BACK_FOR_CORRECTIONS
        assert event == 'dtdo_revert'
        assert issues == 'Fire extinguisher missing'

    def test_unknown_outcome(self):
        with pytest.raises(InvalidTransition):
            workflow.resolve_inspection_outcome('postponed')
