class DomainError(Exception):
    kind = "internal"
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


#
# NotFound
#
class NotFoundError(DomainError):
    kind = "not_found"
    code = "not_found"

class CartNotFoundError(NotFoundError):
    code = "cart_not_found"

class ItemNotFoundError(NotFoundError):
    code = "item_not_found"

class OrderNotFoundError(NotFoundError):
    code = "order_not_found"

class ProductNotFoundError(NotFoundError):
    code = "product_not_found"


#
# Validation
#
class InvalidRequestError(DomainError):
    kind = "validation"
    code = "invalid_request"

class InvalidQuantityError(InvalidRequestError):
    code = "invalid_quantity"

class EmptyCartError(InvalidRequestError):
    code = "empty_cart"


#
# Conflict
#
class ConflictError(DomainError):
    kind = "conflict"
    code = "conflict"

# カートではなくなった注文 (completed) を変更しようとした
class CartClosedError(ConflictError):
    code = "cart_closed"

# open_cart_key の一意制約違反
class OpenCartExistsError(ConflictError):
    code = "open_cart_exists"

# 楽観的な排他制御でバージョン番号が一致しなかった
class ConcurrentUpdateError(ConflictError):
    code = "concurrent_update"


#
# Checkout
#
class PaymentDeclinedError(DomainError):
    kind = "payment_declined"
    code = "payment_declined"

class InsufficientStockError(DomainError):
    kind = "insufficient_stock"
    code = "insufficient_stock"
