"""Quectel cellular telemetry: AT response decoding, channel-to-frequency resolution and signal aggregation."""
from celltelemetry.core.bands import (
    LTE_BANDS,
    NR_BANDS,
    band_by_number,
    bands_containing,
    bands_for_channel_type,
    export_bands_csv,
)
from celltelemetry.core.frequency import (
    calculate_frequency,
    detect_network_type,
    nr_raster_frequency,
    resolve_cell,
    resolve_cells,
    resolve_lte,
    resolve_nr,
)
from celltelemetry.core.signal import (
    aggregate,
    mimo_layers,
    rate_quality,
    summarize_antenna,
    summarize_group,
)
from celltelemetry.errors import (
    InvalidInputError,
    MalformedLineError,
    TelemetryError,
    UndecodableInputError,
)
from celltelemetry.parsers.decoder import decode, group_carriers
from celltelemetry.schemas import (
    AggregateSignalQuality,
    AntennaReading,
    BandDefinition,
    CarrierGroup,
    CellRecord,
    DecodeResult,
    DecodeWarning,
    FrequencyInfo,
    FrequencyResult,
    LteCell,
    LteFrequencyInfo,
    NrCell,
    NrFrequencyInfo,
    format_mhz,
)

__version__ = "0.1.0"
