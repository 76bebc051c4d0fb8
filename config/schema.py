from organizations import schema as organizations_schema
from votations import schema as votations_schema
import graphene
import logging

logger = logging.getLogger(__name__)

class Query(organizations_schema.Query, votations_schema.Query, graphene.ObjectType):
	pass

class Mutation(
	organizations_schema.Mutation,
	votations_schema.Mutation,
	graphene.ObjectType
):
	pass

# Register all types
types = [
	organizations_schema.OrganizationType,
	organizations_schema.TokenPurchaseType,
	votations_schema.VotationType,
	votations_schema.OptionVotesType,
]

schema = graphene.Schema(
	query=Query,
	mutation=Mutation,
	types=types
)

__all__ = ['schema']
