# Overview: Request decorators that establish the caller's actor context and enforce role permissions.

from functools import wraps
from flask import current_app, request, jsonify, g

from .permissions import ActorContext, ROLES, role_has_permission

ACTOR_HEADER = "X-Actor-Id"
ROLE_HEADER = "X-Actor-Role"
SHOP_HEADER = "X-Shop-Id"


def _has_actor() -> bool:
    return hasattr(g, 'actor')


def require_actor(f):
    """
    Require the caller to identify itself and establish the actor context.

    Sets g.actor to an ActorContext built from:
    - X-Actor-Id: the acting user (free-form id)
    - X-Actor-Role: one of admin, manager, cashier (required)
    - X-Shop-Id: the shop scope (may be omitted for shop-independent routes)

    Routes pass g.actor into services explicitly; services never read g.

    Returns 401 if the role header is missing or unknown.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        role = (request.headers.get(ROLE_HEADER) or "").strip().lower()
        if not role:
            return jsonify({"error": "Actor role required"}), 401
        if role not in ROLES:
            return jsonify({"error": f"Unknown role: {role}"}), 401

        g.actor = ActorContext(
            actor_id=request.headers.get(ACTOR_HEADER) or None,
            role=role,
            shop_id=request.headers.get(SHOP_HEADER) or None,
        )
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the actor's role to grant a specific permission."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_actor was called first
            if not _has_actor():
                return jsonify({"error": "Actor role required"}), 401

            actor = g.actor
            if not role_has_permission(actor.role, permission_code):
                current_app.logger.warning(
                    "Permission denied actor=%s role=%s permission=%s path=%s",
                    actor.actor_id, actor.role, permission_code, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_shop(f):
    """
    Require a shop scope (X-Shop-Id).

    A shop_id in the JSON body or query string must match the header; a
    caller cannot act on another shop by naming it in the payload.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _has_actor():
            return jsonify({"error": "Actor role required"}), 401
        if not g.actor.shop_id:
            return jsonify({"error": f"{SHOP_HEADER} header required"}), 400

        body = request.get_json(silent=True) if request.is_json else None
        claimed = request.args.get("shop_id")
        if isinstance(body, dict) and body.get("shop_id") is not None:
            claimed = body.get("shop_id")
        if claimed is not None and claimed != g.actor.shop_id:
            current_app.logger.warning(
                "Cross-shop request denied actor=%s scope=%s claimed=%s",
                g.actor.actor_id, g.actor.shop_id, claimed,
            )
            return jsonify({"error": "Shop scope mismatch"}), 403

        return f(*args, **kwargs)

    return decorated_function
