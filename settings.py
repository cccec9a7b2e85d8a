import os
from core.log import logger

if os.environ.get("ENVIRONMENT") != "os":
    logger.info("load env from file")
    from dotenv import load_dotenv

    load_dotenv()
else:
    logger.info("load env from os")


def str_to_optional_int(string: str | None) -> int | None:
    if string is None or string.strip() == "":
        return None
    try:
        return int(string)
    except ValueError:
        raise Exception(f"{string} is not integer, ex input 6 -> 6, empty -> None")


# Environment
ENVIRONMENT = os.environ.get("ENVIRONMENT")

# Timezone
TZ = os.environ.get("TZ", "Asia/Jakarta")

# Database conf
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./voucher.db")

# Voucher issuance conf
VOUCHER_ID_LENGTH = str_to_optional_int(os.environ.get("VOUCHER_ID_LENGTH"))
VOUCHER_EXPIRY_DAYS = str_to_optional_int(os.environ.get("VOUCHER_EXPIRY_DAYS"))

# Identity recorded as creator for vouchers issued from the cli
SYSTEM_USER = os.environ.get("SYSTEM_USER", "system")
