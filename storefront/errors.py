"""
Taxonomie des erreurs métier de la boutique.

Chaque erreur porte un code stable (exposé au front dans les résultats d'action)
et le statut HTTP utilisé lorsqu'elle remonte jusqu'à une vue.
"""
from typing import Optional

# module storefront.errors
class StorefrontError(Exception):
    code = "error"
    status_code = 400
    default_message = "Erreur inattendue"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(StorefrontError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Veuillez vous connecter"


class Forbidden(StorefrontError):
    code = "forbidden"
    status_code = 403
    default_message = "Accès interdit"


class NotFound(StorefrontError):
    code = "not_found"
    status_code = 404
    default_message = "Ressource introuvable"


class InvalidInput(StorefrontError):
    code = "invalid_input"
    status_code = 400
    default_message = "Données invalides"


class InsufficientStock(StorefrontError):
    code = "insufficient_stock"
    status_code = 409
    default_message = "Stock insuffisant"


class EmptyCart(StorefrontError):
    code = "empty_cart"
    status_code = 400
    default_message = "Votre panier est vide"


class EmptyOrMissingCart(StorefrontError):
    code = "empty_or_missing_cart"
    status_code = 422
    default_message = "Panier introuvable ou vide"


class SignatureVerificationFailed(StorefrontError):
    code = "signature_verification_failed"
    status_code = 400
    default_message = "Signature du webhook invalide"


class ProviderError(StorefrontError):
    code = "provider_error"
    status_code = 502
    default_message = "Le prestataire de paiement est indisponible"


class MissingMetadata(StorefrontError):
    code = "missing_metadata"
    status_code = 422
    default_message = "Métadonnées de session manquantes"


STATUS_BY_CODE = {
    cls.code: cls.status_code
    for cls in (
        Unauthenticated,
        Forbidden,
        NotFound,
        InvalidInput,
        InsufficientStock,
        EmptyCart,
        EmptyOrMissingCart,
        SignatureVerificationFailed,
        ProviderError,
        MissingMetadata,
    )
}
