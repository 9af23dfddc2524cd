# app/domain/keys.py
#uklad kluczy w tabeli - format musi zostac bez zmian (dane juz zapisane)
#
#  CartLine      PK=USER#<userId>       SK=CART#<productId>
#  Order         PK=USER#<userId>       SK=ORDER#<orderId>
#  OrderLine     PK=ORDER#<orderId>     SK=ITEM#<productId>
#  Product       PK=PRODUCT#<productId> SK=METADATA
#  InventoryLog  PK=PRODUCT#<productId> SK=INVLOG#<timestamp>#<suffix>

USER_PREFIX = "USER#"
CART_PREFIX = "CART#"
ORDER_PREFIX = "ORDER#"
ITEM_PREFIX = "ITEM#"
PRODUCT_PREFIX = "PRODUCT#"
INVLOG_PREFIX = "INVLOG#"
PRODUCT_SK = "METADATA"


def user_pk(user_id: str) -> str:
    return f"{USER_PREFIX}{user_id}"


def cart_key(user_id: str, product_id: str) -> tuple[str, str]:
    return user_pk(user_id), f"{CART_PREFIX}{product_id}"


def order_key(user_id: str, order_id: str) -> tuple[str, str]:
    return user_pk(user_id), f"{ORDER_PREFIX}{order_id}"


def order_line_key(order_id: str, product_id: str) -> tuple[str, str]:
    return f"{ORDER_PREFIX}{order_id}", f"{ITEM_PREFIX}{product_id}"


def product_key(product_id: str) -> tuple[str, str]:
    return f"{PRODUCT_PREFIX}{product_id}", PRODUCT_SK


def inventory_log_key(product_id: str, timestamp: str, suffix: str) -> tuple[str, str]:
    #suffix - dwa wpisy z ta sama mikrosekunda nie moga miec tego samego klucza
    return f"{PRODUCT_PREFIX}{product_id}", f"{INVLOG_PREFIX}{timestamp}#{suffix}"


def is_product_key(key: tuple[str, str]) -> bool:
    return key[0].startswith(PRODUCT_PREFIX) and key[1] == PRODUCT_SK


def is_cart_key(key: tuple[str, str]) -> bool:
    return key[0].startswith(USER_PREFIX) and key[1].startswith(CART_PREFIX)
