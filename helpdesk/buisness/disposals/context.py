"""
Disposal Context
The asset disposal-approval workflow.

create_disposal_request, approve_disposal_request and reject_disposal_request
each run their database changes in a single transaction and only then send
notifications, so a mail failure never undoes a committed decision.
"""

from typing import Union

from helpdesk import db
from helpdesk.data.assets.asset import Asset
from helpdesk.data.assets.asset_change import AssetChange
from helpdesk.data.assets.disposal_request import DisposalRequest
from helpdesk.data.tickets.ticket import Ticket
from helpdesk.data.core.user_info.user import User
from helpdesk.buisness.core.errors import (
    ConflictError, NotFoundError, PermissionDeniedError, ValidationError,
)
from helpdesk.buisness.core import permissions
from helpdesk.buisness.core.location_scope import can_access_location
from helpdesk.buisness.disposals.recipients import get_notification_recipients
from helpdesk.buisness.disposals.state_machine import DisposalStateMachine
from helpdesk.buisness.notifications import disposal_notifications
from helpdesk.buisness.notifications.mailer import get_smtp_config
from helpdesk.logger import get_logger
from helpdesk.utils.timezones import utcnow

logger = get_logger("helpdesk.disposals")

MIN_REASON_LENGTH = 20
EMAIL_HISTORY_LIMIT = 10


class DisposalContext:

    def __init__(self, disposal: Union[DisposalRequest, int]):
        if isinstance(disposal, int):
            found = db.session.get(DisposalRequest, disposal)
            if found is None:
                raise NotFoundError(f"Disposal request {disposal} not found")
            disposal = found
        self._disposal = disposal

    @property
    def disposal(self) -> DisposalRequest:
        return self._disposal

    @classmethod
    def create(cls, actor: User, asset_id: int, reason: str) -> 'DisposalContext':
        if not permissions.has_permission(actor, 'request_disposal'):
            raise PermissionDeniedError("You do not have permission to request asset disposals")

        reason = (reason or '').strip()
        if len(reason) < MIN_REASON_LENGTH:
            raise ValidationError(f"The reason must be at least {MIN_REASON_LENGTH} characters long")

        asset = db.session.get(Asset, asset_id) if asset_id else None
        if asset is None or asset.deleted_at is not None:
            raise NotFoundError("Asset not found")
        if asset.location_id and not can_access_location(actor, asset.location_id):
            raise PermissionDeniedError(f"You do not have access to the location of {asset.asset_tag}")
        if asset.is_disposed:
            raise ConflictError(f"Asset {asset.asset_tag} has already been disposed")
        existing = DisposalRequest.query.filter_by(asset_id=asset.id, status=DisposalRequest.PENDING).first()
        if existing is not None:
            raise ConflictError(f"Asset {asset.asset_tag} already has a pending disposal request")

        disposal = DisposalRequest(
            asset_id=asset.id,
            reason=reason,
            status=DisposalRequest.PENDING,
            requested_by_id=actor.id,
            requested_at=utcnow(),
            asset_snapshot=asset.snapshot(),
            created_by_id=actor.id,
            updated_by_id=actor.id,
        )
        db.session.add(disposal)
        db.session.commit()
        logger.info(f"Disposal request {disposal.id} for {asset.asset_tag} created by {actor.username}", extra={"disposal_id": disposal.id, "asset_id": disposal.asset_id})

        context = cls(disposal)
        context._notify_requested(actor)
        return context

    def _notify_requested(self, actor: User) -> None:
        disposal = self._disposal
        asset = disposal.asset
        try:
            tickets = (
                Ticket.active()
                .filter(Ticket.asset_id == asset.id)
                .order_by(Ticket.created_at.desc())
                .limit(EMAIL_HISTORY_LIMIT)
                .all()
            )
            history = (
                AssetChange.query.filter_by(asset_id=asset.id)
                .order_by(AssetChange.changed_at.desc(), AssetChange.id.desc())
                .limit(EMAIL_HISTORY_LIMIT)
                .all()
            )
            recipients = get_notification_recipients(asset, actor.id)
            disposal_notifications.notify_disposal_requested(disposal, recipients, actor, tickets, history)

            if get_smtp_config() is not None:
                disposal.notification_sent_at = utcnow()
                db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Disposal request {disposal.id} notifications failed: {e}")

    def _review(self, actor: User, new_status: str, notes: str) -> DisposalRequest:
        if not permissions.can_review_disposals(actor):
            raise PermissionDeniedError("Only administrators can review disposal requests")

        disposal = self._disposal
        DisposalStateMachine.validate_transition(disposal.status, new_status)

        disposal.status = new_status
        disposal.reviewed_by_id = actor.id
        disposal.reviewed_at = utcnow()
        disposal.review_notes = notes
        disposal.stamp(actor)
        return disposal

    def approve(self, actor: User, notes: str = None) -> DisposalRequest:
        """Approve the request and mark the asset DISPOSED."""
        notes = (notes or '').strip() or None
        disposal = self._review(actor, DisposalRequest.APPROVED, notes)

        asset = disposal.asset
        old_status = asset.status
        asset.status = Asset.DISPOSED
        asset.stamp(actor)
        AssetChange.record(
            asset, 'status', old_status, Asset.DISPOSED, actor.id,
            change_type=AssetChange.DISPOSED, reason=disposal.reason,
        )
        db.session.commit()
        logger.info(f"Disposal request {disposal.id} approved by {actor.username}; {asset.asset_tag} disposed", extra={"disposal_id": disposal.id, "asset_id": disposal.asset_id})

        try:
            recipients = get_notification_recipients(asset, actor.id)
            disposal_notifications.notify_disposal_approved(disposal, recipients, actor)
        except Exception as e:
            logger.error(f"Disposal approval notifications for {disposal.id} failed: {e}")
        return disposal

    def reject(self, actor: User, notes: str) -> DisposalRequest:
        notes = (notes or '').strip()
        if not notes:
            raise ValidationError("A rejection reason is required")

        disposal = self._review(actor, DisposalRequest.REJECTED, notes)
        db.session.commit()
        logger.info(f"Disposal request {disposal.id} rejected by {actor.username}", extra={"disposal_id": disposal.id, "asset_id": disposal.asset_id})

        try:
            disposal_notifications.notify_disposal_rejected(disposal, actor)
        except Exception as e:
            logger.error(f"Disposal rejection notification for {disposal.id} failed: {e}")
        return disposal


def create_disposal_request(actor: User, asset_id: int, reason: str) -> DisposalRequest:
    return DisposalContext.create(actor, asset_id, reason).disposal


def approve_disposal_request(actor: User, request_id: int, notes: str = None) -> DisposalRequest:
    return DisposalContext(request_id).approve(actor, notes)


def reject_disposal_request(actor: User, request_id: int, notes: str) -> DisposalRequest:
    return DisposalContext(request_id).reject(actor, notes)
