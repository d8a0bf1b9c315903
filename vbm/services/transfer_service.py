"""
Transfer market: offers between teams and the completed transfers they lead to.
Accepting an offer moves the player and the money in one transaction; an offer the
buyer can no longer afford is rejected instead of accepted.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from vbm.errors import InsufficientFundsError, InvalidInputError, NotFoundError, OfferStateError
from vbm.models import Player, Team, Transfer, TransferOffer, TransferOfferStatus
from vbm.persistence.db import transaction
from vbm.persistence.repositories import PlayerRepository, TeamRepository, TransferRepository

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_JERSEY_NUMBERS = range(1, 100)


class TransferService:
    """
    Offer lifecycle: pending -> accepted | rejected | withdrawn.
    Only pending offers can change; every other status is final.
    """

    def __init__(self) -> None:
        self._team_repo = TeamRepository()
        self._player_repo = PlayerRepository()
        self._transfer_repo = TransferRepository()

    # ---------- Lookups ----------

    def _require_team(self, conn: sqlite3.Connection, team_id: str) -> Team:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {team_id}")
        return team

    def _require_player(self, conn: sqlite3.Connection, player_id: str) -> Player:
        player = self._player_repo.get(conn, player_id)
        if player is None:
            raise NotFoundError(f"Player not found: {player_id}")
        return player

    def get_offer(self, conn: sqlite3.Connection, offer_id: str) -> TransferOffer:
        offer = self._transfer_repo.get_offer(conn, offer_id)
        if offer is None:
            raise NotFoundError(f"Transfer offer not found: {offer_id}")
        return offer

    def list_offers(
        self,
        conn: sqlite3.Connection,
        team_id: str | None = None,
        status: TransferOfferStatus | None = None,
    ) -> list[TransferOffer]:
        if team_id is not None:
            self._require_team(conn, team_id)
        return self._transfer_repo.list_offers(conn, team_id=team_id, status=status)

    def transfer_history(self, conn: sqlite3.Connection, team_id: str | None = None) -> list[Transfer]:
        if team_id is not None:
            self._require_team(conn, team_id)
        return self._transfer_repo.list_transfers(conn, team_id=team_id)

    # ---------- Offers ----------

    def make_offer(
        self,
        conn: sqlite3.Connection,
        player_id: str,
        buying_team_id: str,
        amount: Decimal,
        message: str | None = None,
    ) -> TransferOffer:
        """
        Bid for a rostered player of another team.
        The buyer must be able to cover the amount now, and may hold only one
        pending offer per player.
        """
        amount = Decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
        if amount <= 0:
            raise InvalidInputError(f"Offer amount must be positive (got {amount})")
        player = self._require_player(conn, player_id)
        buyer = self._require_team(conn, buying_team_id)
        if player.team_id is None:
            raise InvalidInputError(f"Player {player_id} is a free agent; there is no team to buy from")
        if player.team_id == buyer.id:
            raise InvalidInputError(f"Player {player_id} already plays for team {buyer.id}")
        if buyer.money < amount:
            raise InsufficientFundsError(
                f"Team {buyer.id} has {buyer.money}, cannot offer {amount} for player {player_id}"
            )
        pending = self._transfer_repo.list_offers(
            conn, status=TransferOfferStatus.PENDING, player_id=player_id
        )
        if any(o.buying_team_id == buyer.id for o in pending):
            raise InvalidInputError(f"Team {buyer.id} already has a pending offer for player {player_id}")
        offer = self._transfer_repo.create_offer(
            conn,
            player_id=player.id,
            buying_team_id=buyer.id,
            selling_team_id=player.team_id,
            amount=amount,
            message=message,
        )
        logger.info(
            "Offer %s: team %s bids %s for player %s of team %s",
            offer.id, buyer.id, amount, player.id, player.team_id,
        )
        return offer

    def accept_offer(
        self, conn: sqlite3.Connection, offer_id: str, transfer_date: date | None = None
    ) -> Transfer:
        """
        Complete the transfer: the player joins the buyer (on the bench), the fee moves
        from buyer to seller, and the player's other pending offers are rejected.
        If the buyer can no longer pay, the offer is rejected and InsufficientFundsError raised.
        """
        offer = self._require_pending(conn, offer_id)
        player = self._require_player(conn, offer.player_id)
        if player.team_id != offer.selling_team_id:
            raise OfferStateError(
                f"Player {player.id} no longer plays for team {offer.selling_team_id}"
            )
        buyer = self._require_team(conn, offer.buying_team_id)
        seller = self._require_team(conn, offer.selling_team_id)
        if buyer.money < offer.amount:
            self._transfer_repo.set_offer_status(conn, offer.id, TransferOfferStatus.REJECTED)
            logger.info("Offer %s rejected: team %s can no longer afford %s", offer.id, buyer.id, offer.amount)
            raise InsufficientFundsError(
                f"Team {buyer.id} has {buyer.money}, cannot pay {offer.amount}; offer {offer.id} rejected"
            )
        jersey = self._free_jersey(conn, buyer.id, player.jersey_number)

        with transaction(conn):
            self._transfer_repo.set_offer_status(conn, offer.id, TransferOfferStatus.ACCEPTED, commit=False)
            self._player_repo.move_to_team(conn, player.id, buyer.id, jersey, commit=False)
            self._team_repo.update_money(conn, buyer.id, buyer.money - offer.amount, commit=False)
            self._team_repo.update_money(conn, seller.id, seller.money + offer.amount, commit=False)
            transfer = self._transfer_repo.record_transfer(
                conn,
                player_id=player.id,
                from_team_id=seller.id,
                to_team_id=buyer.id,
                fee=offer.amount,
                transfer_date=transfer_date or date.today(),
                offer_id=offer.id,
                commit=False,
            )
            others = self._transfer_repo.list_offers(
                conn, status=TransferOfferStatus.PENDING, player_id=player.id
            )
            for other in others:
                self._transfer_repo.set_offer_status(conn, other.id, TransferOfferStatus.REJECTED, commit=False)

        logger.info(
            "Transfer %s: player %s moved from %s to %s for %s (%d other offers rejected)",
            transfer.id, player.id, seller.name, buyer.name, offer.amount, len(others),
        )
        return transfer

    def reject_offer(self, conn: sqlite3.Connection, offer_id: str) -> TransferOffer:
        """Selling side turns the offer down."""
        return self._close(conn, offer_id, TransferOfferStatus.REJECTED)

    def withdraw_offer(self, conn: sqlite3.Connection, offer_id: str) -> TransferOffer:
        """Buying side takes the offer back."""
        return self._close(conn, offer_id, TransferOfferStatus.WITHDRAWN)

    # ---------- Helpers ----------

    def _require_pending(self, conn: sqlite3.Connection, offer_id: str) -> TransferOffer:
        offer = self.get_offer(conn, offer_id)
        if offer.status is not TransferOfferStatus.PENDING:
            raise OfferStateError(f"Offer {offer_id} is already {offer.status.value}")
        return offer

    def _close(
        self, conn: sqlite3.Connection, offer_id: str, status: TransferOfferStatus
    ) -> TransferOffer:
        self._require_pending(conn, offer_id)
        self._transfer_repo.set_offer_status(conn, offer_id, status)
        logger.info("Offer %s %s", offer_id, status.value)
        return self.get_offer(conn, offer_id)

    def _free_jersey(self, conn: sqlite3.Connection, team_id: str, preferred: int) -> int:
        """Keep the player's number if the new team has it free, else the lowest free one."""
        taken = {p.jersey_number for p in self._player_repo.list_by_team(conn, team_id)}
        if preferred not in taken:
            return preferred
        for number in _JERSEY_NUMBERS:
            if number not in taken:
                return number
        raise InvalidInputError(f"Team {team_id} has no free jersey number")
