# Path: otpgate/infrastructure/setup/router_setup.py
from fastapi import FastAPI, APIRouter
from pathlib import Path
from importlib import import_module
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

logger = LoggingService(LogConfig())

PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent
ENDPOINTS_DIR = PACKAGE_ROOT / "api" / "v1" / "endpoints"


def setup_routers(app: FastAPI):
    """
    Automatically register every `router` found under otpgate/api/v1/endpoints.

    Args:
        app: The FastAPI application instance.
    """
    base_router = APIRouter()
    registered_count = 0

    for file_path in sorted(ENDPOINTS_DIR.rglob("*.py")):
        if file_path.name.startswith("_"):
            continue

        relative_path = file_path.relative_to(PACKAGE_ROOT).with_suffix("")
        module_path = f"{PACKAGE_ROOT.name}.{relative_path.as_posix().replace('/', '.')}"
        module = import_module(module_path)

        if hasattr(module, "router"):
            base_router.include_router(module.router)
            registered_count += 1
            logger.debug("Registered router", context={"module": module_path})

    app.include_router(base_router)
    logger.info(
        "All routers registered",
        context={"count": registered_count, "routes": [route.path for route in base_router.routes]},
    )
