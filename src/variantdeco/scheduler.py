# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Deferred application of member-level decorations.

Python evaluates decorators on class-body functions (and ``__set_name__`` hooks) before any class decorator runs, so a
member is decorated before its owner had a chance to declare its variant. Member-level attachments are therefore
queued per owner and applied once the owner's variant is known: either when an owner-level decoration assigns it,
or lazily when metadata of a still pending owner is read. Entries provisionally applied under the default variant are
rolled back (metadata diff and attribute snapshot) and replayed when a different variant is finalized later.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from variantdeco.constants import DecorationKeys, DecorationState
from variantdeco.metadata import MetadataStore
from variantdeco.protocol import ArgsOverrides, OwnerStatus
from variantdeco.registry import DecorationRegistry
from variantdeco.utils.metadata_diff import MetadataDiffEntry, diff_buckets, revert_diff
from variantdeco.utils.paths import clone_args, clone_value
from variantdeco.utils.warnings import eager_resolution_failed_msg

log = logging.getLogger(__name__)

_MISSING = object()


@dataclass(eq=False)
class PendingEntry:
    owner: Any
    target: Any
    member: Optional[str]
    descriptor: Any
    # called with (variant, overrides) to obtain the dispatch function for that variant
    callback: Callable[[str, Optional[ArgsOverrides]], Callable[..., Any]]
    args_override: Optional[ArgsOverrides] = None
    definition_key: Optional[str] = None
    applied: bool = False
    last_applied_pass: Optional[int] = None
    last_applied_variant: Optional[str] = None
    metadata_diff: List[MetadataDiffEntry] = field(default_factory=list)
    descriptor_snapshot: Any = _MISSING
    descriptor_was_own: bool = False

    @property
    def label(self) -> str:
        owner = getattr(self.owner, "__qualname__", None) or repr(self.owner)
        return f"{owner}.{self.member}"

    def overrides(self) -> Optional[ArgsOverrides]:
        if self.args_override is None:
            return None
        return {idx: clone_args(args) for idx, args in self.args_override.items()}


@dataclass(eq=False)
class OwnerState:
    pending: List[PendingEntry] = field(default_factory=list)
    variant: Optional[str] = None
    direct_apply: bool = False
    resolved: bool = False
    last_applied_variant: Optional[str] = None
    applied_count: int = 0
    applying: bool = False
    pass_id: int = 0

    @property
    def status(self) -> OwnerStatus:
        if self.resolved:
            return OwnerStatus.resolved
        if self.pending:
            return OwnerStatus.pending
        return OwnerStatus.unset


class DecorationScheduler:
    def __init__(self, metadata: MetadataStore, registry: DecorationRegistry) -> None:
        self.metadata = metadata
        self.registry = registry
        self._states: Dict[Any, OwnerState] = {}

    @property
    def default_variant(self) -> str:
        return self.metadata.config.default_variant

    def state_for(self, owner: Any) -> OwnerState:
        if owner is None:
            raise ValueError("Invalid owner provided to the decoration scheduler")
        state = self._states.get(owner)
        if state is None:
            state = self._states[owner] = OwnerState()
        return state

    ################################################################################
    # Registration
    ################################################################################

    def register_pending(
        self,
        owner: Any,
        target: Any,
        callback: Callable[[str, Optional[ArgsOverrides]], Callable[..., Any]],
        member: Optional[str] = None,
        descriptor: Any = None,
        args_override: Optional[ArgsOverrides] = None,
        definition_key: Optional[str] = None,
    ) -> PendingEntry:
        """Queue a member-level attachment for ``owner``, applying it at once when the owner's variant is final."""
        state = self.state_for(owner)
        entry = PendingEntry(
            owner=owner,
            target=target,
            member=member,
            descriptor=descriptor,
            callback=callback,
            args_override=clone_value(args_override),
            definition_key=definition_key,
        )
        state.pending.append(entry)

        if state.direct_apply:
            variant = state.variant or self.metadata.variant_of(owner)
            self._apply_entry(entry, variant, state.pass_id)
            state.applied_count = len(state.pending)
            state.variant = variant
            self.metadata.set(owner, DecorationKeys.DECORATION.value, DecorationState.RESOLVED)
            return entry

        if state.applying:
            self._apply_entry(entry, state.variant or self.metadata.variant_of(owner), state.pass_id)
            return entry

        self._mark_pending(owner, state)

        if self.registry.resolver_is_custom:
            try:
                eager = self.registry.resolver(owner)
            except Exception as err:
                log.debug(eager_resolution_failed_msg.format(owner=entry.label, err=err))
            else:
                if eager and eager != self.default_variant:
                    log.debug(f"Eagerly resolved {entry.label} to variant `{eager}`")
                    self.resolve(owner, eager)
        return entry

    def _mark_pending(self, owner: Any, state: OwnerState) -> None:
        state.resolved = False
        if not state.variant:
            state.variant = self.default_variant
        self.metadata.set(owner, DecorationKeys.DECORATION.value, DecorationState.PENDING)

    ################################################################################
    # Resolution
    ################################################################################

    def resolve(self, target: Any, variant: Optional[str] = None) -> None:
        """Apply the queued entries of ``target``'s owner.

        With an explicit non-default ``variant`` (or once the owner has been finalized) the resolution is final:
        starting at the first entry provisionally applied under another variant whose composition differs, every
        applied entry is reverted in reverse order and replayed in registration order.
        Without one, outstanding entries are applied under the owner's current variant.
        """
        owner = self.metadata.constr(target)
        state = self.state_for(owner)
        if state.applying:
            return
        if not state.pending and not variant:
            return

        resolved = variant or state.variant or self.metadata.variant_of(owner)
        cursor = state.applied_count
        if not variant and state.last_applied_variant == resolved and cursor >= len(state.pending):
            return
        finalize = bool(variant and variant != self.default_variant) or state.direct_apply

        if state.pending:
            state.pass_id += 1
            state.applying = True
            try:
                if finalize:
                    self._finalize(state, resolved)
                else:
                    self._apply_outstanding(state, resolved, cursor)
            finally:
                state.applying = False

        state.variant = resolved
        state.resolved = True
        state.last_applied_variant = resolved
        if finalize:
            state.applied_count = len(state.pending)
            if resolved != self.default_variant:
                state.direct_apply = True
        log.debug(f"Resolved {self.metadata.symbol(owner)} to variant `{resolved}` ({len(state.pending)} entries, "
                  f"final={finalize})")
        self.metadata.set(owner, DecorationKeys.DECORATION.value, DecorationState.RESOLVED)

    def _apply_outstanding(self, state: OwnerState, variant: str, cursor: int) -> None:
        index = cursor
        # entries queued while applying are appended, and picked up by this loop
        while index < len(state.pending):
            entry = state.pending[index]
            index += 1
            if entry.last_applied_pass == state.pass_id:
                continue
            self._apply_entry(entry, variant, state.pass_id)
        state.applied_count = len(state.pending)

    def _replay_start(self, state: OwnerState, variant: str) -> Optional[int]:
        # entries before the first one whose composition changes produce the same writes under ``variant``
        if variant == self.default_variant:
            return None
        for index, entry in enumerate(state.pending):
            if entry.last_applied_pass == state.pass_id or not entry.applied:
                continue
            if entry.last_applied_variant != variant and self._composition_differs(entry, variant):
                return index
        return None

    def _finalize(self, state: OwnerState, variant: str) -> None:
        start = self._replay_start(state, variant)
        replay: List[PendingEntry] = []
        if start is not None:
            # the whole applied tail is unwound so later writes to shared paths or descriptors are replayed too
            replay = [entry for entry in state.pending[start:]
                      if entry.applied and entry.last_applied_pass != state.pass_id]

        for entry in reversed(replay):
            self._revert_entry(entry)

        replayed = set(map(id, replay))
        for entry in list(state.pending):
            if entry.last_applied_pass == state.pass_id:
                continue
            if not entry.applied or id(entry) in replayed:
                self._apply_entry(entry, variant, state.pass_id)
            else:
                entry.last_applied_pass = state.pass_id

    def _composition_differs(self, entry: PendingEntry, variant: str) -> bool:
        if not entry.definition_key or not self.registry.has_key(entry.definition_key):
            return False
        previous = entry.last_applied_variant or self.default_variant
        return self.registry.compose(entry.definition_key, previous) != self.registry.compose(
            entry.definition_key, variant
        )

    ################################################################################
    # Application and rollback
    ################################################################################

    def _apply_entry(self, entry: PendingEntry, variant: str, pass_id: int) -> None:
        target, member = entry.target, entry.member
        if member is not None and not entry.applied:
            own = vars(target) if hasattr(target, "__dict__") else {}
            entry.descriptor_was_own = member in own
            entry.descriptor_snapshot = own.get(member, _MISSING)
        before = clone_value(self.metadata.bucket(entry.owner))
        try:
            descriptor = entry.descriptor
            if member is not None and descriptor is not None:
                descriptor = vars(target).get(member, descriptor)
            dispatch = entry.callback(variant, entry.overrides())
            result = dispatch(target, member, descriptor)
            if member is not None and result is not None:
                setattr(target, member, result)
        except Exception:
            log.exception(f"Error resolving pending decoration for {entry.label} with variant `{variant}`")
        finally:
            entry.applied = True
            entry.last_applied_pass = pass_id
            entry.last_applied_variant = variant
            entry.metadata_diff = diff_buckets(before, self.metadata.bucket(entry.owner))

    def _revert_entry(self, entry: PendingEntry) -> None:
        bucket = self.metadata.bucket(entry.owner)
        if bucket is not None and entry.metadata_diff:
            revert_diff(bucket, entry.metadata_diff)
        self._restore_descriptor(entry)
        log.debug(f"Reverted {entry.label} (variant `{entry.last_applied_variant}`, "
                  f"{len(entry.metadata_diff)} path(s))")
        entry.metadata_diff = []

    @staticmethod
    def _restore_descriptor(entry: PendingEntry) -> None:
        if entry.member is None:
            return
        target, member = entry.target, entry.member
        if entry.descriptor_snapshot is not _MISSING:
            setattr(target, member, entry.descriptor_snapshot)
        elif member in vars(target):
            delattr(target, member)
