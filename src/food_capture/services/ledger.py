"""Interactive weight editing over an analyzed meal."""

from dataclasses import dataclass, field

from food_capture.domain.nutrition import NutritionInfo, scale_ingredient

DEFAULT_MIN_WEIGHT_G = 10.0
DEFAULT_MAX_WEIGHT_G = 1000.0


@dataclass
class NutritionLedger:
    """Hold the analysis baseline and the meal as currently edited.

    Every rescale starts from the baseline ingredient rather than the last
    edited value, so repeated edits never accumulate rounding drift.
    """

    baseline: NutritionInfo
    min_weight_g: float = DEFAULT_MIN_WEIGHT_G
    max_weight_g: float = DEFAULT_MAX_WEIGHT_G
    _current: NutritionInfo = field(init=False)

    def __post_init__(self) -> None:
        if self.min_weight_g <= 0 or self.min_weight_g > self.max_weight_g:
            raise ValueError("Weight bounds must satisfy 0 < min <= max")
        self._current = self.baseline

    @property
    def current(self) -> NutritionInfo:
        return self._current

    def rescale(self, index: int, weight_grams: float) -> NutritionInfo:
        """Set one ingredient's weight and return the updated meal."""
        if not 0 <= index < len(self.baseline.ingredients):
            raise IndexError(f"Ingredient index {index} out of range")
        scaled = scale_ingredient(self.baseline.ingredients[index], weight_grams)
        self._current = self._current.with_ingredient(index, scaled)
        return self._current

    def reset_ingredient(self, index: int) -> NutritionInfo:
        """Restore one ingredient to its analyzed values."""
        if not 0 <= index < len(self.baseline.ingredients):
            raise IndexError(f"Ingredient index {index} out of range")
        self._current = self._current.with_ingredient(
            index, self.baseline.ingredients[index]
        )
        return self._current

    def reset(self) -> NutritionInfo:
        self._current = self.baseline
        return self._current

    def clamp_weight(self, weight_grams: float) -> float:
        """Clamp a requested weight to the editable range."""
        return min(max(weight_grams, self.min_weight_g), self.max_weight_g)

    def is_rescalable(self, index: int) -> bool:
        return self.baseline.ingredients[index].weight_grams > 0
