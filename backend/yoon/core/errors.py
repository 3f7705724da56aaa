"""Domain errors raised by the services.

Every error carries the HTTP status the API answers with and a short,
localized message that clients show to the user as-is.
"""


class YoonError(Exception):
    status_code: int = 400
    message: str = "Une erreur est survenue. Veuillez réessayer."

    def __init__(self, detail: str | None = None, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(detail or self.message)

    @property
    def name(self) -> str:
        return type(self).__name__


class NotAuthenticatedError(YoonError):
    status_code = 401
    message = "Vous devez être connecté pour continuer"


class InvalidCredentialsError(YoonError):
    status_code = 401
    message = "Email ou mot de passe incorrect"


class EmailAlreadyRegisteredError(YoonError):
    status_code = 409
    message = "Un compte existe déjà avec cet email"


class WeakPasswordError(YoonError):
    message = "Le mot de passe est trop court"


class InvalidProfileError(YoonError):
    message = "Veuillez remplir tous les champs"


class InvalidTripError(YoonError):
    message = "Veuillez remplir tous les champs"


class InvalidSeatCountError(YoonError):
    message = "Nombre de places invalide"


class SelfBookingError(YoonError):
    status_code = 403
    message = "Vous ne pouvez pas réserver votre propre trajet"


class DuplicateBookingError(YoonError):
    status_code = 409
    message = "Vous avez déjà une réservation pour ce trajet"


class TripNotFoundError(YoonError):
    status_code = 404
    message = "Trajet introuvable"


class BookingNotFoundError(YoonError):
    status_code = 404
    message = "Réservation introuvable"


class NotTripOwnerError(YoonError):
    status_code = 403
    message = "Seul le conducteur peut effectuer cette action"


class NotBookingOwnerError(YoonError):
    status_code = 403
    message = "Cette réservation ne vous appartient pas"


class RepositoryError(YoonError):
    status_code = 503
    message = "Impossible de traiter la demande. Veuillez réessayer."


class NotificationDeliveryError(YoonError):
    status_code = 502
    message = "Impossible d'envoyer la notification"
