"""Static data provider with hardcoded marginfi bank snapshots."""

from solders.pubkey import Pubkey

from bank_risk.data.interfaces import (
    BankConfigRaw,
    BankDataProvider,
    BankRaw,
    InterestRateConfigRaw,
)
from bank_risk.protocol.fixed_point import WrappedI80F48
from bank_risk.protocol.price import OraclePrice, PriceWithConfidence

MARGINFI_GROUP = Pubkey.from_string("4qp6Fx6tnZkY5Wropq9wUYgtFxXKwE6viZxFHg3rdAG8")

USDC_BANK = Pubkey.from_string("2s37akK2eyBbp8DZgCm7RtsaEz8eJP3Nxd4urLHQv7yB")
SOL_BANK = Pubkey.from_string("CCKtUs6Cgwo4aaQUmBPmyoApH2gUDErxNZCAntD6LYGh")

USDC_MINT = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
SOL_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")

# Pyth legacy price accounts
USDC_ORACLE = Pubkey.from_string("Gnt27xtC473ZT2Mw5u8wZ68Z3gULkSTb5DuxJy7eJotD")
SOL_ORACLE = Pubkey.from_string("H6ARHf6YXhGYeQfUzQNGk6rDNnLBQKrenN712K4AQJEG")

# 2025-01-01T00:00:00Z
_SNAPSHOT_TIMESTAMP = 1_735_689_600


def _w(value: str) -> WrappedI80F48:
    return WrappedI80F48.from_decimal(value)


# --- Representative mainnet snapshot ---

_BANKS: dict[Pubkey, BankRaw] = {
    USDC_BANK: BankRaw(
        mint=USDC_MINT,
        mint_decimals=6,
        group=MARGINFI_GROUP,
        asset_share_value=_w("1.0512"),
        liability_share_value=_w("1.1237"),
        total_asset_shares=_w("285000000000000"),  # ~300M USDC
        total_liability_shares=_w("200000000000000"),
        last_update=_SNAPSHOT_TIMESTAMP,
        config=BankConfigRaw(
            asset_weight_init=_w("0.9"),
            asset_weight_maint=_w("0.95"),
            liability_weight_init=_w("1.25"),
            liability_weight_maint=_w("1.1"),
            deposit_limit=500_000_000_000_000,
            borrow_limit=400_000_000_000_000,
            risk_tier={"collateral": {}},
            total_asset_value_init_limit=0,
            oracle_max_age=60,
            asset_tag=0,
            interest_rate_config=InterestRateConfigRaw(
                optimal_utilization_rate=_w("0.9"),
                plateau_interest_rate=_w("0.1"),
                max_interest_rate=_w("1.25"),
                insurance_fee_fixed_apr=_w("0"),
                insurance_ir_fee=_w("0.05"),
                protocol_fixed_fee_apr=_w("0.01"),
                protocol_ir_fee=_w("0.05"),
            ),
            operational_state={"operational": {}},
            oracle_setup={"pythLegacy": {}},
            oracle_keys=(USDC_ORACLE,),
        ),
        flags=0,
    ),
    SOL_BANK: BankRaw(
        mint=SOL_MINT,
        mint_decimals=9,
        group=MARGINFI_GROUP,
        asset_share_value=_w("1.0213"),
        liability_share_value=_w("1.0874"),
        total_asset_shares=_w("2400000000000000"),  # ~2.45M SOL
        total_liability_shares=_w("1100000000000000"),
        last_update=_SNAPSHOT_TIMESTAMP,
        config=BankConfigRaw(
            asset_weight_init=_w("0.75"),
            asset_weight_maint=_w("0.85"),
            liability_weight_init=_w("1.25"),
            liability_weight_maint=_w("1.1"),
            deposit_limit=3_000_000_000_000_000,
            borrow_limit=2_000_000_000_000_000,
            risk_tier={"collateral": {}},
            # USD; above this the initial asset weight is scaled down
            total_asset_value_init_limit=400_000_000,
            oracle_max_age=0,
            asset_tag=1,
            interest_rate_config=InterestRateConfigRaw(
                optimal_utilization_rate=_w("0.8"),
                plateau_interest_rate=_w("0.08"),
                max_interest_rate=_w("1"),
                insurance_fee_fixed_apr=_w("0"),
                insurance_ir_fee=_w("0.05"),
                protocol_fixed_fee_apr=_w("0.01"),
                protocol_ir_fee=_w("0.05"),
            ),
            operational_state={"operational": {}},
            oracle_setup={"pythLegacy": {}},
            oracle_keys=(SOL_ORACLE,),
        ),
        flags=0b10,  # lending emissions active
    ),
}

# USD per whole token
_ORACLE_PRICES: dict[Pubkey, OraclePrice] = {
    USDC_BANK: OraclePrice(
        price_realtime=PriceWithConfidence.from_confidence("1.0", "0.001"),
        price_weighted=PriceWithConfidence.from_confidence("1.0", "0.0005"),
        timestamp=_SNAPSHOT_TIMESTAMP,
    ),
    SOL_BANK: OraclePrice(
        price_realtime=PriceWithConfidence.from_confidence("185.0", "0.2"),
        price_weighted=PriceWithConfidence.from_confidence("184.5", "0.1"),
        timestamp=_SNAPSHOT_TIMESTAMP,
    ),
}

_TOKEN_SYMBOLS: dict[Pubkey, str] = {
    USDC_BANK: "USDC",
    SOL_BANK: "SOL",
}


class StaticDataProvider(BankDataProvider):
    """Data provider using a hardcoded snapshot of the USDC and SOL banks."""

    def list_bank_addresses(self) -> list[Pubkey]:
        return list(_BANKS)

    def get_bank_raw(self, address: Pubkey) -> BankRaw:
        return _BANKS[address]

    def get_oracle_price(self, address: Pubkey) -> OraclePrice:
        return _ORACLE_PRICES[address]

    def get_token_symbol(self, address: Pubkey) -> str | None:
        return _TOKEN_SYMBOLS.get(address)
