from __future__ import annotations

from flask import Flask, current_app, request, send_from_directory

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container
from ..core.constants import PAYMENT_SLIP_BUCKET


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    fees = container.fee_service

    @app.route("/api/fee-accounts", methods=["GET"], endpoint="list_fee_accounts")
    @auth
    def list_fee_accounts():
        return ok(fees.list_accounts(current_context()))

    @app.route("/api/fee-accounts", methods=["POST"], endpoint="create_fee_account")
    @auth
    def create_fee_account():
        data = json_body()
        account = fees.create_account(
            current_context(),
            student_id=data.get("student_id"),
            total_fees=data.get("total_fees"),
            academic_year=data.get("academic_year"),
            semester=data.get("semester"),
        )
        return ok(account, message="Fee account created", status=201)

    @app.route("/api/fee-accounts/<account_id>", methods=["PATCH"], endpoint="update_fee_account")
    @auth
    def update_fee_account(account_id: str):
        account = fees.update_total_fees(current_context(), account_id, json_body().get("total_fees"))
        return ok(account, message="Fee account updated")

    @app.route("/api/fee-account", methods=["GET"], endpoint="my_fee_account")
    @auth
    def my_fee_account():
        return ok(fees.get_account(current_context(), request.args.get("student_id")))

    @app.route("/api/fee-payments", methods=["POST"], endpoint="submit_payment")
    @auth
    def submit_payment():
        # multipart when a slip is attached, JSON otherwise
        if request.files:
            data = request.form
            upload = request.files.get("slip")
            slip = (upload.filename, upload.read()) if upload and upload.filename else None
        else:
            data = json_body()
            slip = None
        batch = fees.submit_payment(
            current_context(),
            amount=data.get("amount"),
            transaction_message=data.get("transaction_message"),
            slip=slip,
        )
        return ok(batch, message="Payment submitted for verification", status=201)

    @app.route("/api/fee-payments", methods=["GET"], endpoint="list_payments")
    @auth
    def list_payments():
        return ok(fees.list_payments(current_context(), status=request.args.get("status")))

    @app.route(f"/uploads/{PAYMENT_SLIP_BUCKET}/<student_id>/<filename>", methods=["GET"], endpoint="payment_slip")
    @auth
    def payment_slip(student_id: str, filename: str):
        path = fees.slip_path(current_context(), student_id, filename)
        return send_from_directory(current_app.config["UPLOAD_DIR"], path)

    @app.route("/api/fee-payments/<payment_id>/review", methods=["POST"], endpoint="review_payment")
    @auth
    def review_payment(payment_id: str):
        data = json_body()
        batch = fees.review_payment(current_context(), payment_id, data.get("decision"), data.get("feedback"))
        return ok(batch, message=f"Payment {batch.status.value}")
