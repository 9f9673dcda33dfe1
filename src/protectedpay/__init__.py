__all__ = [
    # Client
    "ProtectedPayClient",
    # Session
    "WalletSession",
    "SessionContext",
    "LocalWalletProvider",
    "ChainParameters",
    "Signer",
    # Config
    "NetworkConfig",
    "load_settings",
    # Models
    "Transfer",
    "TransferStatus",
    "GroupPayment",
    "GroupPaymentStatus",
    "SavingsPot",
    "PotStatus",
    "UserProfile",
    "ProfileDetails",
    "TransferEvent",
    "GroupPaymentEvent",
    "SavingsPotEvent",
    # Identifiers
    "ClaimById",
    "ClaimByAddress",
    "ClaimByUsername",
    "parse_claim_identifier",
    # Units
    "parse_amount",
    "format_amount",
    # Errors
    "ProtectedPayError",
    "UserRejectedError",
    "InsufficientFundsError",
    "TransactionRevertedError",
    "ChainMismatchError",
    "ValidationError",
    "NotConnectedError",
    "ContractDecodeError",
    "TransactionTimeoutError",
    "NetworkError",
    "ProviderRpcError",
    "normalize_error",
    "describe_error",
    # Keys
    "generate_eoa",
    "get_address",
    "load_private_key",
]

from .config import NetworkConfig, load_settings
from .errors import (
    ChainMismatchError,
    ContractDecodeError,
    InsufficientFundsError,
    NetworkError,
    NotConnectedError,
    ProtectedPayError,
    ProviderRpcError,
    TransactionRevertedError,
    TransactionTimeoutError,
    UserRejectedError,
    ValidationError,
    describe_error,
    normalize_error,
)
from .units import format_amount, parse_amount
from .wallet.eth import generate_eoa, get_address, load_private_key
from .wallet.provider import ChainParameters, LocalWalletProvider
from .wallet.session import SessionContext, WalletSession
from .wallet.signer import Signer
from .contract.client import ProtectedPayClient
from .contract.identifiers import (
    ClaimByAddress,
    ClaimById,
    ClaimByUsername,
    parse_claim_identifier,
)
from .contract.models import (
    GroupPayment,
    GroupPaymentEvent,
    GroupPaymentStatus,
    PotStatus,
    ProfileDetails,
    SavingsPot,
    SavingsPotEvent,
    Transfer,
    TransferEvent,
    TransferStatus,
    UserProfile,
)
