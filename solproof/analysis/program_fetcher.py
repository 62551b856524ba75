"""
Program account fetch and executable image resolution.

For programs owned by the upgradeable BPF loader the Program account only
holds a pointer to its ProgramData account; the ELF image and the upgrade
authority live there. Layouts (little-endian u32 enum tag first):

    Program:     tag=2 | programdata address (32)
    ProgramData: tag=3 | slot u64 | option u8 | authority (32) | image ...

Any other owner: the account data itself is treated as the image and no
candidate authority is extracted.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from solproof.chain.models import AccountInfo
from solproof.chain.source import ChainDataSource
from solproof.solproof_logging import get_logger
from solproof.utils import address_from_bytes

logger = get_logger(__name__)

BPF_LOADER_UPGRADEABLE_ID = "BPFLoaderUpgradeab1e11111111111111111111111"

PROGRAM_TAG = 2
PROGRAM_DATA_TAG = 3
PROGRAM_ACCOUNT_LEN = 36
PROGRAM_DATA_HEADER_LEN = 45


@dataclass(frozen=True)
class ProgramImage:
    """Executable bytes plus loader metadata for one program."""

    address: str
    data: bytes = b""
    account: AccountInfo | None = None
    programdata_address: str | None = None
    upgrade_authority: str | None = None
    computed: bool = True

    @property
    def upgradeable(self) -> bool:
        return self.programdata_address is not None

    @property
    def candidate_authorities(self) -> tuple[str, ...]:
        return (self.upgrade_authority,) if self.upgrade_authority else ()

    @classmethod
    def missing(cls, address: str) -> "ProgramImage":
        return cls(address=address, computed=False)


def _u32_tag(data: bytes) -> int | None:
    if len(data) < 4:
        return None
    return struct.unpack_from("<I", data, 0)[0]


def parse_program_account(data: bytes) -> str | None:
    """ProgramData address from an upgradeable Program account, else None."""
    if len(data) < PROGRAM_ACCOUNT_LEN or _u32_tag(data) != PROGRAM_TAG:
        return None
    return address_from_bytes(data[4:36])


def parse_programdata_account(data: bytes) -> tuple[str | None, bytes]:
    """(upgrade_authority, image) from a ProgramData account. Raises ValueError on bad layout."""
    if len(data) < PROGRAM_DATA_HEADER_LEN or _u32_tag(data) != PROGRAM_DATA_TAG:
        raise ValueError("not a ProgramData account")
    authority = address_from_bytes(data[13:45]) if data[12] == 1 else None
    return authority, bytes(data[PROGRAM_DATA_HEADER_LEN:])


async def fetch_program_image(source: ChainDataSource, address: str) -> ProgramImage:
    """
    Fetch the program account and resolve its executable image.

    A missing account yields ProgramImage.missing() (computed=False).
    Transport errors propagate to the stage boundary.
    """
    account = await source.get_account(address)
    if account is None:
        logger.warning("program_account_not_found", program=address)
        return ProgramImage.missing(address)

    if account.owner != BPF_LOADER_UPGRADEABLE_ID:
        return ProgramImage(address=address, data=account.data, account=account)

    programdata_address = parse_program_account(account.data)
    if programdata_address is None:
        # Buffer or ProgramData account passed directly
        try:
            authority, image = parse_programdata_account(account.data)
        except ValueError:
            return ProgramImage(address=address, data=account.data, account=account)
        return ProgramImage(address=address, data=image, account=account, upgrade_authority=authority)

    programdata = await source.get_account(programdata_address)
    if programdata is None:
        logger.warning("programdata_not_found", program=address, programdata=programdata_address)
        return ProgramImage(
            address=address,
            account=account,
            programdata_address=programdata_address,
            computed=False,
        )
    try:
        authority, image = parse_programdata_account(programdata.data)
    except ValueError as e:
        logger.warning("programdata_unparsed", program=address, programdata=programdata_address, error=str(e))
        return ProgramImage(
            address=address,
            data=programdata.data,
            account=account,
            programdata_address=programdata_address,
            computed=False,
        )
    logger.debug(
        "program_image_resolved",
        program=address,
        programdata=programdata_address,
        image_bytes=len(image),
        has_authority=authority is not None,
    )
    return ProgramImage(
        address=address,
        data=image,
        account=account,
        programdata_address=programdata_address,
        upgrade_authority=authority,
    )
