import os, json, logging, traceback
import azure.functions as func

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

# Only try dotenv locally (Azure sets WEBSITE_SITE_NAME; FUNCTIONS_WORKER_RUNTIME covers the host)
IS_AZURE = bool(os.getenv("WEBSITE_SITE_NAME")) or os.getenv("FUNCTIONS_WORKER_RUNTIME") == "python"
if not IS_AZURE:
    try:
        from dotenv import load_dotenv
        load_dotenv()
    except ImportError:
        pass

logger = logging.getLogger(__name__)

REGISTERED: list[str] = []
FAILURES: dict[str, dict] = {}

def _try(modpath: str, name: str):
    try:
        mod = __import__(modpath, fromlist=["bp"])
        app.register_functions(getattr(mod, "bp"))
        REGISTERED.append(name)
    except Exception as e:
        logger.error(f"Blueprint {name} failed to register: {e!r}")
        FAILURES[name] = {"error": repr(e), "trace": traceback.format_exc()}

# 🔹 Register AT STARTUP so the Functions host discovers HTTP and timer triggers
_try("routes.auth", "auth")
_try("routes.submissions", "submissions")
_try("routes.prayers", "prayers")
_try("routes.admin_routes", "admin")
_try("routes.scheduled", "scheduled")

@app.function_name(name="Ping")
@app.route(route="ping", methods=["GET"])
def ping(req: func.HttpRequest) -> func.HttpResponse:
    return func.HttpResponse("ok", mimetype="text/plain")

# Diagnostics (read-only)
@app.function_name(name="Diag")
@app.route(route="_diag", methods=["GET"])
def diag(req: func.HttpRequest) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps({"registered": REGISTERED, "failures": FAILURES}),
        mimetype="application/json"
    )
