"""
Error taxonomy shared by the sale and votation services.

Every failure is a one-shot validation error surfaced synchronously to the
caller; nothing here is retryable. Each class carries a stable ``code`` that
the GraphQL layer and logs report alongside the message.
"""


class OrgTokenError(Exception):
    code = 'error'
    default_message = 'Operation failed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


# Existence

class ExistenceError(OrgTokenError):
    code = 'not_found'


class OrganizationNotFoundError(ExistenceError):
    code = 'organization_not_found'
    default_message = 'Organization is not registered'


class VotationNotFoundError(ExistenceError):
    code = 'votation_not_found'
    default_message = 'Votation not found'


class OrganizationAlreadyRegisteredError(OrgTokenError):
    code = 'organization_already_registered'
    default_message = 'Organization is already registered'


# Authorization

class AuthorizationError(OrgTokenError):
    code = 'unauthorized'


class NotAdminError(AuthorizationError):
    code = 'not_admin'
    default_message = 'Caller is not an admin of this organization'


class NotDonorError(AuthorizationError):
    code = 'not_donor'
    default_message = 'Caller does not hold any organization tokens'


class NotAuthenticatedError(AuthorizationError):
    code = 'not_authenticated'
    default_message = 'A valid caller token is required'


class ReservedAddressError(AuthorizationError):
    code = 'reserved_address'
    default_message = 'The treasury address cannot act on its own sales or votations'


# State

class StateError(OrgTokenError):
    code = 'invalid_state'


class InvalidVotationStateError(StateError):
    code = 'invalid_votation_state'
    default_message = 'Votation is not in the required state'


class VotingClosedError(StateError):
    code = 'voting_closed'
    default_message = 'Voting period has ended'


class VotingNotEndedError(StateError):
    code = 'voting_not_ended'
    default_message = 'Voting period has not ended yet'


class SaleModeError(StateError):
    code = 'wrong_sale_mode'
    default_message = 'Operation is not available for this sale mode'


class ReentrancyError(StateError):
    code = 'reentrant_call'
    default_message = 'Re-entrant call rejected'


# Value

class InvalidValueError(OrgTokenError):
    code = 'invalid_value'


class ZeroAmountError(InvalidValueError):
    code = 'zero_amount'
    default_message = 'Amount must be greater than zero'


class EmptyTopicError(InvalidValueError):
    code = 'empty_topic'
    default_message = 'Topic must not be empty'


class OptionCountError(InvalidValueError):
    code = 'option_count'
    default_message = 'A votation needs between 2 and 10 options'


class OptionIndexError(InvalidValueError):
    code = 'option_index'
    default_message = 'Option index is out of range'


class InvalidQuorumError(InvalidValueError):
    code = 'invalid_quorum'
    default_message = 'Quorum must be greater than zero'


class InsufficientBalanceError(InvalidValueError):
    code = 'insufficient_balance'
    default_message = 'Insufficient token balance'


class InsufficientAvailabilityError(InvalidValueError):
    code = 'insufficient_availability'
    default_message = 'Not enough tokens available for sale'


class PaymentMismatchError(InvalidValueError):
    code = 'payment_mismatch'
    default_message = 'Paid value does not match the total price'


class ArithmeticOverflowError(InvalidValueError):
    code = 'arithmetic_overflow'
    default_message = 'Amount exceeds the supported integer range'


# External transfer

class PayoutFailedError(OrgTokenError):
    code = 'payout_failed'
    default_message = 'Forwarding the payment to the organization failed'
