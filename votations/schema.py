import graphene

from organizations.exceptions import OrgTokenError
from organizations.graphql_utils import error_payload, require_caller_address

from .services import VotationService, get_votation, get_votes, get_votes_spent


class OptionVotesType(graphene.ObjectType):
    index = graphene.Int()
    votes = graphene.BigInt()


class VotationType(graphene.ObjectType):
    organization = graphene.String()
    votation_id = graphene.BigInt()
    proposer = graphene.String()
    topic = graphene.String()
    options = graphene.List(graphene.String)
    quorum = graphene.BigInt()
    state = graphene.String()
    start_time = graphene.DateTime()
    end_time = graphene.DateTime()
    votes_for = graphene.BigInt()
    votes_against = graphene.BigInt()
    total_votes = graphene.BigInt()


class Query(graphene.ObjectType):
    votation = graphene.Field(
        VotationType,
        organization=graphene.String(required=True),
        votation_id=graphene.BigInt(required=True),
    )
    votation_votes = graphene.List(
        OptionVotesType,
        organization=graphene.String(required=True),
        votation_id=graphene.BigInt(required=True),
    )
    votes_spent = graphene.BigInt(
        organization=graphene.String(required=True),
        votation_id=graphene.BigInt(required=True),
        voter=graphene.String(required=True),
    )

    def resolve_votation(self, info, organization, votation_id):
        try:
            return get_votation(organization, votation_id)
        except OrgTokenError:
            return None

    def resolve_votation_votes(self, info, organization, votation_id):
        try:
            tallies = get_votes(organization, votation_id)
        except OrgTokenError:
            return None
        return [OptionVotesType(index=index, votes=votes) for index, votes in sorted(tallies.items())]

    def resolve_votes_spent(self, info, organization, votation_id, voter):
        try:
            return get_votes_spent(organization, votation_id, voter)
        except OrgTokenError:
            return None


class ProposeVotation(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        topic = graphene.String(required=True)
        options = graphene.List(graphene.NonNull(graphene.String), required=True)
        quorum = graphene.BigInt(required=True)

    votation = graphene.Field(VotationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, topic, options, quorum):
        try:
            votation = VotationService().propose(organization, require_caller_address(info), topic, options, quorum)
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(votation=votation, success=True, errors=None)


class ApproveVotation(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        votation_id = graphene.BigInt(required=True)

    votation = graphene.Field(VotationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, votation_id):
        try:
            votation = VotationService().approve(organization, votation_id, require_caller_address(info))
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(votation=votation, success=True, errors=None)


class RejectVotation(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        votation_id = graphene.BigInt(required=True)

    votation = graphene.Field(VotationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, votation_id):
        try:
            votation = VotationService().reject(organization, votation_id, require_caller_address(info))
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(votation=votation, success=True, errors=None)


class CastVote(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        votation_id = graphene.BigInt(required=True)
        option_index = graphene.Int(required=True)
        amount = graphene.BigInt(required=True)

    votation = graphene.Field(VotationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, votation_id, option_index, amount):
        try:
            votation = VotationService().vote(
                organization, votation_id, require_caller_address(info), option_index, amount
            )
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(votation=votation, success=True, errors=None)


class FinalizeVotation(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        votation_id = graphene.BigInt(required=True)

    votation = graphene.Field(VotationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, votation_id):
        try:
            votation = VotationService().finalize(organization, votation_id)
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(votation=votation, success=True, errors=None)


class Mutation(graphene.ObjectType):
    propose_votation = ProposeVotation.Field()
    approve_votation = ApproveVotation.Field()
    reject_votation = RejectVotation.Field()
    cast_vote = CastVote.Field()
    finalize_votation = FinalizeVotation.Field()
