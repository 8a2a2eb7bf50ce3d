"""
RecordStore — the local clock record cache and its reconciliation with
the server.

The sequence is kept newest-first. Clock status is never stored next to
it: it is read off the head of the sequence, so the two cannot drift.
The only time the status needs another source is when the sequence is
empty; then the cached `currentStatus` from the last session is used.

Optimistic writes go in at the head as `pending` before the request is
sent. Each write remembers the status it replaced; rollback restores that
exact value instead of flipping, so a second failed attempt cannot leave
the status inverted.
"""

from .config import log
from .constants import KEY_CLOCK_RECORDS, KEY_CURRENT_STATUS
from .models import ClockAction, ClockRecord, ClockStatus, SyncState, now_ms

MS_PER_HOUR = 3_600_000


def compute_worked_hours(records):
    """
    Sum the worked time of a chronological (oldest-first) record list.

    Records are paired positionally in strides of two: (0, 1), (2, 3), ...
    A pair counts only if it is exactly (clock_in, clock_out); anything
    else is skipped without complaint. A trailing unpaired clock_in (user
    still on the clock) is left out. Pairs are not checked against date
    boundaries, so a shift over midnight still counts as one span.

    Returns hours rounded to two decimal places.
    """
    total_ms = 0
    for i in range(0, len(records) - 1, 2):
        first, second = records[i], records[i + 1]
        if first.action == ClockAction.CLOCK_IN and second.action == ClockAction.CLOCK_OUT:
            total_ms += second.timestamp - first.timestamp
    return round(total_ms / MS_PER_HOUR, 2)


def _parse_status(value):
    try:
        return ClockStatus(value)
    except ValueError:
        return ClockStatus.OUT


class RecordStore:
    """Owns the record sequence. Nothing else mutates it."""

    compute_worked_hours = staticmethod(compute_worked_hours)

    def __init__(self, store):
        self._store = store
        self._records = []
        self._baseline = ClockStatus.OUT     # status when the sequence is empty
        self._prior_status = {}              # local_id -> status before the write

    # ─── Read side ───────────────────────────────────────────

    @property
    def records(self):
        """Newest-first copy of the sequence."""
        return list(self._records)

    @property
    def status(self) -> ClockStatus:
        return self._status_from(r for r in self._records if r.sync_state is not SyncState.FAILED)

    @property
    def head(self):
        return self._records[0] if self._records else None

    def _status_from(self, records):
        for record in records:
            return ClockStatus.after(ClockAction(record.action))
        return self._baseline

    def _index_of(self, record):
        for i, existing in enumerate(self._records):
            if existing.local_id == record.local_id:
                return i
        return None

    # ─── Startup ─────────────────────────────────────────────

    def load(self):
        """
        Restore the cached sequence and status from the KeyValueStore.
        No network involved, so the last-known state can be shown offline.
        """
        records = []
        for raw in self._store.get(KEY_CLOCK_RECORDS) or []:
            try:
                record = ClockRecord.from_dict(raw)
            except (KeyError, ValueError, TypeError) as e:
                log.warning("Skipping unreadable cached record %r: %s", raw, e)
                continue
            if record.is_pending:
                # Left behind by a crash mid-request; it was never confirmed
                log.warning("Dropping unconfirmed cached record from %s", record.date)
                continue
            records.append(record)

        records.sort(key=lambda r: r.timestamp, reverse=True)
        self._records = records
        self._prior_status.clear()
        self._baseline = _parse_status(self._store.get(KEY_CURRENT_STATUS) or ClockStatus.OUT.value)

        cached = self._store.get(KEY_CURRENT_STATUS)
        if records and cached and cached != self.status.value:
            log.warning("Cached status %r disagrees with newest record; using %s", cached, self.status.value)

        log.info("Loaded %d cached records (status=%s)", len(records), self.status.value)
        return self.records

    # ─── Optimistic write lifecycle ──────────────────────────

    def begin_optimistic_write(self, action, location, user_id):
        """Put a pending record at the head. Status flips immediately."""
        action = ClockAction(action)
        record = ClockRecord(
            action=action,
            timestamp=now_ms(),
            user_id=str(user_id),
            location=location,
            sync_state=SyncState.PENDING,
        )
        self._prior_status[record.local_id] = self.status
        self._records.insert(0, record)
        log.debug("Optimistic %s (%s)", action.value, record.local_id)
        return record

    def confirm(self, record, server_id):
        """Mark a pending record confirmed under its server id. False if it is gone."""
        index = self._index_of(record)
        if index is None:
            log.info("Confirm for a record no longer held (%s) — ignored", record.local_id)
            return False
        current = self._records[index]
        current.id = str(server_id)
        current.sync_state = SyncState.CONFIRMED
        self._prior_status.pop(record.local_id, None)
        return True

    def rollback(self, record):
        """Exact inverse of begin_optimistic_write. False if the record is gone."""
        prior = self._prior_status.pop(record.local_id, None)
        index = self._index_of(record)
        if index is None:
            return False
        del self._records[index]

        if prior is not None:
            if not self._records:
                self._baseline = prior
            if self.status is not prior:
                log.error(
                    "Status after rollback is %s, expected %s — record sequence out of order",
                    self.status.value, prior.value,
                )
        log.info("Rolled back %s (status=%s)", ClockAction(record.action).value, self.status.value)
        return True

    # ─── Persistence / reconciliation ────────────────────────

    def persist(self):
        """Write confirmed records and their status. Pending ones never hit storage."""
        confirmed = [r for r in self._records if r.sync_state is SyncState.CONFIRMED]
        self._store.set(KEY_CLOCK_RECORDS, [r.to_dict() for r in confirmed])
        self._store.set(KEY_CURRENT_STATUS, self._status_from(confirmed).value)

    def reconcile(self, server_records):
        """
        Replace the confirmed part of the sequence with the server's view,
        keeping any in-flight pending records at the head.
        """
        confirmed = []
        for raw in server_records:
            try:
                record = ClockRecord.from_dict(raw) if isinstance(raw, dict) else raw
            except (KeyError, ValueError, TypeError) as e:
                log.warning("Skipping malformed server record %r: %s", raw, e)
                continue
            record.sync_state = SyncState.CONFIRMED
            confirmed.append(record)
        confirmed.sort(key=lambda r: r.timestamp, reverse=True)

        pending = [r for r in self._records if r.is_pending]
        self._records = pending + confirmed
        if not confirmed:
            log.info("Server returned no records; keeping cached status %s", self._baseline.value)
        self.persist()
        log.info("Reconciled %d server records (%d pending kept)", len(confirmed), len(pending))
        return self.records

    def clear(self):
        """Drop everything, status back to out. Used when the session ends."""
        self._records = []
        self._prior_status.clear()
        self._baseline = ClockStatus.OUT
        self._store.delete(KEY_CLOCK_RECORDS)
        self._store.delete(KEY_CURRENT_STATUS)

    # ─── Reporting ───────────────────────────────────────────

    def worked_hours(self, day=None):
        """Worked hours over the held records, optionally for one ISO date."""
        chronological = [
            r for r in reversed(self._records)
            if r.sync_state is not SyncState.FAILED and (day is None or r.date == day)
        ]
        return compute_worked_hours(chronological)
