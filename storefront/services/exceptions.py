# storefront/services/exceptions.py

class ServiceError(Exception):
    """Clase base para errores de la capa de servicio."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class InvalidQuantityError(ServiceError):
    """Lanzada cuando una cantidad es inválida (e.g., <= 0)."""
    pass


class ValidationError(ServiceError):
    """Campos obligatorios de un paso ausentes o inválidos."""

    def __init__(self, detail: str, fields: list[str] | None = None):
        self.fields = list(fields or [])
        super().__init__(detail)


class BusinessRuleViolation(ServiceError):
    """Regla de negocio no cumplida (e.g., pedido mínimo para entrega)."""

    def __init__(self, detail: str, remaining_cents: int = 0):
        self.remaining_cents = remaining_cents
        super().__init__(detail)


class NetworkError(ServiceError):
    """Fallo en el viaje de ida y vuelta al servicio de pedidos."""
    pass


class ConfigParseError(ServiceError):
    """Forma de configuración de entrega no reconocida."""
    pass
