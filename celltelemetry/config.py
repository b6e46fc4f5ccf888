import logging
import os

from dotenv import load_dotenv

load_dotenv()  # 读取 .env


def _get_float(name: str, default: float) -> float:
    try: return float(os.getenv(name, str(default)))
    except ValueError: return default

def _get_bool(name: str, default: bool) -> bool:
    val = os.getenv(name, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    elif val in ("0", "false", "no", "off"):
        return False
    return default


LOG_LEVEL = os.getenv("TELEMETRY_LOG_LEVEL", "WARNING").upper()

# bytes 输入不是合法 UTF-8 时：True 直接抛错，False 替换后继续并记一条 warning
STRICT_UTF8 = _get_bool("TELEMETRY_STRICT_UTF8", False)

# 信号百分比标定：floor = 0%，ceiling = 100%
RSRP_FLOOR_DB   = _get_float("TELEMETRY_RSRP_FLOOR_DB", -140.0)
RSRP_CEILING_DB = _get_float("TELEMETRY_RSRP_CEILING_DB", -75.0)
RSRQ_FLOOR_DB   = _get_float("TELEMETRY_RSRQ_FLOOR_DB", -20.0)
RSRQ_CEILING_DB = _get_float("TELEMETRY_RSRQ_CEILING_DB", -10.0)
SINR_FLOOR_DB   = _get_float("TELEMETRY_SINR_FLOOR_DB", 0.0)
SINR_CEILING_DB = _get_float("TELEMETRY_SINR_CEILING_DB", 40.0)


def configure_logging(level: str | None = None) -> None:
    """
    把 LOG_LEVEL 应用到 celltelemetry 包的 logger。
    库本身不加 handler，输出交给宿主程序的 logging 配置。
    """
    name = (level or LOG_LEVEL).upper()
    logging.getLogger("celltelemetry").setLevel(getattr(logging, name, logging.WARNING))
