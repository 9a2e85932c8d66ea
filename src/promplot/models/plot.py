"""Plot specification consumed by the scatter renderer."""

from pathlib import Path

from pydantic import BaseModel, Field

from promplot.ticks import LinearTicks, LogTicks, TickSource, TimeTicks


class PlotSpec(BaseModel):
    """Everything needed to render one scatter plot. Immutable once built."""

    title: str = Field(default="", description="Plot title, usually the query itself")
    x_label: str = Field(default="Date")
    y_label: str = Field(default="log10")
    x_ticks: TickSource = Field(default_factory=lambda: TimeTicks(LinearTicks()))
    y_ticks: TickSource = Field(default_factory=LogTicks)
    width_in: float = Field(default=16.0, gt=0, description="Canvas width in inches")
    height_in: float = Field(default=12.0, gt=0, description="Canvas height in inches")
    dpi: int = Field(default=100, gt=0)
    destination: Path = Field(description="Output file; the extension selects the format")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}
