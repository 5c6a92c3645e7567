"""
Page Controller - server-rendered HTML pages.

Dashboard prefixes (/admin, /business, /worker) are role-gated by the
middleware before these views run.
"""

import logging

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_user, logout_user

from barberbook.core.api_utils import parse_int
from barberbook.core.config import get_stripe_publishable_key, local_now
from barberbook.core.exceptions import NotFoundError
from barberbook.core.limiter_config import LOGIN_LIMIT, limiter
from barberbook.db.base import Role
from barberbook.schemas.dtos import PublicBookingRequest, RegisterRequest
from barberbook.services.registry import service_scope

logger = logging.getLogger(__name__)

pages_bp = Blueprint("pages", __name__)

DASHBOARDS = {
    Role.ADMIN: "pages.admin_dashboard",
    Role.BUSINESS_OWNER: "pages.business_dashboard",
    Role.WORKER: "pages.worker_dashboard",
}


def dashboard_url(role: str) -> str:
    return url_for(DASHBOARDS.get(role, "pages.home"))


def safe_callback(target):
    """Only same-site relative paths are honoured as post-login redirects."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return None


@pages_bp.route("/")
def home():
    with service_scope() as services:
        businesses = services.business.list_public()
        return render_template("home.html", businesses=businesses)


@pages_bp.route("/auth/signin", methods=["GET", "POST"])
@limiter.limit(LOGIN_LIMIT, methods=["POST"])
def signin():
    callback_url = safe_callback(request.values.get("callbackUrl"))
    if request.method == "GET":
        return render_template("signin.html", callback_url=callback_url)

    with service_scope() as services:
        user = services.users.authenticate(
            request.form.get("email"), request.form.get("password")
        )
        if user is None:
            logger.warning(
                "Failed sign-in",
                extra={"context": {"email": request.form.get("email")}},
            )
            flash("Invalid email or password", "error")
            return render_template("signin.html", callback_url=callback_url), 401

        login_user(user)
        logger.info("User signed in", extra={"context": {"user_id": user.id}})
        return redirect(callback_url or dashboard_url(user.role))


@pages_bp.route("/auth/signup", methods=["GET", "POST"])
def signup():
    if request.method == "GET":
        return render_template("signup.html")

    try:
        with service_scope() as services:
            user = services.users.register(RegisterRequest.from_dict(request.form))
            login_user(user)
            return redirect(dashboard_url(user.role))
    except ValueError as e:
        flash(str(e), "error")
        return render_template("signup.html", form=request.form), 400


@pages_bp.route("/auth/signout", methods=["POST"])
def signout():
    logout_user()
    return redirect(url_for("pages.home"))


@pages_bp.route("/unauthorized")
def unauthorized():
    return render_template("unauthorized.html"), 403


@pages_bp.route("/admin")
def admin_dashboard():
    with service_scope() as services:
        stats = services.admin.stats()
        businesses = services.admin.list_businesses()
        return render_template("admin_dashboard.html", stats=stats, businesses=businesses)


@pages_bp.route("/business")
def business_dashboard():
    with service_scope() as services:
        actor = services.current_actor()
        business_id = parse_int(request.args.get("businessId"), "businessId")
        if actor.role == Role.ADMIN and business_id is None:
            return redirect(url_for("pages.admin_dashboard"))
        business = services.business.resolve_business(
            actor, business_id, create_missing=True
        )
        now = local_now()
        return render_template(
            "business_dashboard.html",
            business=business,
            stats=services.business.stats(business, now),
            bookings=services.bookings.list_for_actor(actor, business, day=now.date().isoformat()),
            services=services.catalog.list_services(business.id),
            workers=services.staff.list_workers(business),
        )


@pages_bp.route("/worker")
def worker_dashboard():
    with service_scope() as services:
        actor = services.current_actor()
        bookings = services.bookings.upcoming_for_actor(actor, local_now(), limit=20)
        return render_template("worker_dashboard.html", bookings=bookings)


@pages_bp.route("/book/<int:business_id>", methods=["GET", "POST"])
def book(business_id):
    """Public booking page. Card payment runs through Stripe.js when configured."""
    with service_scope() as services:
        try:
            business = services.business.get_public(business_id)
        except NotFoundError:
            return render_template("unauthorized.html", message="Business not found"), 404
        context = {
            "business": business,
            "services": services.catalog.list_services(business.id),
            "workers": services.staff.list_workers(business),
            "stripe_publishable_key": get_stripe_publishable_key(),
        }
        if request.method == "GET":
            return render_template("book.html", **context)

        form = dict(request.form)
        form["businessId"] = business.id
        actor = services.current_actor() if current_user.is_authenticated else None
        try:
            booking = services.bookings.create_public_booking(
                PublicBookingRequest.from_dict(form), actor=actor
            )
        except (ValueError, NotFoundError) as e:
            flash(str(e), "error")
            return render_template("book.html", form=request.form, **context), 400
        return render_template("book.html", booking=booking, **context), 201
