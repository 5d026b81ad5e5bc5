from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS

from .config import Settings, configure_logging, load_settings
from .exceptions import MissingCredentialError, ProviderAuthError, ValidationError
from .listing_store import ListingStore
from .ratelimiter import RequestLimiter, build_limiter
from .search_service import SearchService, validate_search_request

api = Blueprint("property_api", __name__)


def _client_id() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "anon"


@api.route("/property/filters", methods=["GET"])
def property_filters():
    store: ListingStore = current_app.extensions["listing_store"]
    try:
        return jsonify(store.filter_options().to_dict())
    except Exception:
        current_app.logger.exception("Error building filter options")
        return jsonify({"message": "Internal server error"}), 500


@api.route("/property/search", methods=["POST"])
def property_search():
    service: SearchService = current_app.extensions["search_service"]
    limiter: Optional[RequestLimiter] = current_app.extensions.get("rate_limiter")

    try:
        query = validate_search_request(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"message": str(e)}), 400

    if limiter is not None:
        client_id = _client_id()
        if not limiter.allow_request(client_id):
            retry_after = limiter.time_until_reset(client_id)
            resp = jsonify({"message": "Too many requests", "retryAfter": retry_after})
            resp.headers["Retry-After"] = str(int(retry_after))
            return resp, 429

    try:
        outcome = service.search(query)
        return jsonify(outcome.to_list())
    except MissingCredentialError as e:
        current_app.logger.warning("Search rejected: %s", e)
        return jsonify({
            "message": f"{e.key} is not configured on the server",
            "missingKey": e.key,
        }), 503
    except ProviderAuthError as e:
        current_app.logger.error("Provider rejected credentials: %s", e)
        return jsonify({
            "message": f"The {e.provider} API key is invalid",
            "invalidKey": e.key,
        }), 503
    except Exception:
        current_app.logger.exception("Error in search API")
        return jsonify({"message": "Internal server error"}), 500


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ListingStore] = None,
    service: Optional[SearchService] = None,
    limiter: Optional[RequestLimiter] = None,
) -> Flask:
    settings = settings or load_settings()
    store = store if store is not None else ListingStore.load(settings.csv_path)
    service = service or SearchService.from_settings(settings, store)
    if limiter is None:
        limiter = build_limiter(settings)

    app = Flask(__name__)
    app.extensions["settings"] = settings
    app.extensions["listing_store"] = store
    app.extensions["search_service"] = service
    app.extensions["rate_limiter"] = limiter

    CORS(app, resources={
        r"/*": {
            "origins": settings.allowed_origins,
            "allow_headers": ["Content-Type", "Authorization"],
            "methods": ["GET", "POST", "OPTIONS"],
            "max_age": 3600,
        }
    })

    @app.route("/", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "service": "property search", "listings": len(store)}), 200

    app.register_blueprint(api, url_prefix=settings.api_prefix or None)
    return app


if __name__ == "__main__":
    configure_logging()
    _settings = load_settings()
    create_app(_settings).run(host="0.0.0.0", port=5000, debug=not _settings.production)
