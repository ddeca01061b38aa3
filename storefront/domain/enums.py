# storefront/domain/enums.py
import enum


class PaymentMethod(str, enum.Enum):
    pix = "pix"
    credit_card = "credit_card"
    debit_card = "debit_card"
    cash = "cash"


class CheckoutStep(int, enum.Enum):
    summary = 0
    personal_info = 1
    payment = 2
    confirmation = 3


PAYMENT_METHOD_LABELS = {
    PaymentMethod.pix: "PIX",
    PaymentMethod.credit_card: "Cartão de Crédito",
    PaymentMethod.debit_card: "Cartão de Débito",
    PaymentMethod.cash: "Dinheiro",
}
