import graphene
from graphene_django import DjangoObjectType

from .exceptions import OrgTokenError
from .graphql_utils import error_payload, require_caller_address
from .models import TokenPurchase
from .pricing import SALE_MODE_CHOICES
from .services import SaleService, get_organization

SaleModeEnum = graphene.Enum('SaleMode', [(value.upper(), value) for value, _ in SALE_MODE_CHOICES])


class OrganizationType(graphene.ObjectType):
    address = graphene.String()
    payout_address = graphene.String()
    token_id = graphene.BigInt()
    sale_mode = graphene.String()
    price_per_token = graphene.BigInt()
    tokens_available = graphene.BigInt()
    tokens_sold = graphene.BigInt()
    next_votation_id = graphene.BigInt()


class TokenPurchaseType(DjangoObjectType):
    amount = graphene.BigInt()
    total_price = graphene.BigInt()
    tokens_sold_before = graphene.BigInt()
    organization_address = graphene.String()

    class Meta:
        model = TokenPurchase
        fields = ('id', 'buyer', 'amount', 'total_price', 'tokens_sold_before', 'created_at')

    def resolve_organization_address(self, info):
        return self.organization.address


class Query(graphene.ObjectType):
    organization = graphene.Field(OrganizationType, address=graphene.String(required=True))
    purchase_quote = graphene.BigInt(
        address=graphene.String(required=True),
        amount=graphene.BigInt(required=True),
        description="Exact value to send with buyTokens for this amount at the current sale position",
    )

    def resolve_organization(self, info, address):
        try:
            return get_organization(address)
        except OrgTokenError:
            return None

    def resolve_purchase_quote(self, info, address, amount):
        try:
            return SaleService().quote_purchase(address, amount)
        except OrgTokenError:
            return None


class RegisterOrganization(graphene.Mutation):
    """Register the calling address as an organization and mint its initial supply"""

    class Arguments:
        sale_mode = SaleModeEnum(required=True)
        initial_supply = graphene.BigInt(required=True)
        payout_address = graphene.String()

    organization = graphene.Field(OrganizationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, sale_mode, initial_supply, payout_address=None):
        # Enum arguments arrive as their value in graphene 3
        sale_mode = getattr(sale_mode, 'value', sale_mode)
        try:
            caller = require_caller_address(info)
            organization = SaleService().register_organization(caller, sale_mode, initial_supply, payout_address)
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(organization=organization, success=True, errors=None)


class SetTokenPrice(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        price = graphene.BigInt(required=True)

    organization = graphene.Field(OrganizationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, price):
        try:
            snapshot = SaleService().set_price(organization, require_caller_address(info), price)
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(organization=snapshot, success=True, errors=None)


class AdjustTokenAvailability(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        delta = graphene.BigInt(required=True, description="Positive mints into the treasury, negative burns")

    organization = graphene.Field(OrganizationType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, delta):
        try:
            snapshot = SaleService().adjust_available(organization, require_caller_address(info), delta)
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(organization=snapshot, success=True, errors=None)


class BuyTokens(graphene.Mutation):
    class Arguments:
        organization = graphene.String(required=True)
        amount = graphene.BigInt(required=True)
        paid_value = graphene.BigInt(required=True)

    purchase = graphene.Field(TokenPurchaseType)
    success = graphene.Boolean()
    errors = graphene.List(graphene.String)
    error_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, organization, amount, paid_value):
        try:
            purchase = SaleService().buy_tokens(organization, require_caller_address(info), amount, paid_value)
        except OrgTokenError as e:
            return error_payload(cls, e)
        return cls(purchase=purchase, success=True, errors=None)


class Mutation(graphene.ObjectType):
    register_organization = RegisterOrganization.Field()
    set_token_price = SetTokenPrice.Field()
    adjust_token_availability = AdjustTokenAvailability.Field()
    buy_tokens = BuyTokens.Field()
