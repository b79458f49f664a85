from dataclasses import dataclass

from handler import InvalidQuantumNumbers, UnsupportedOrbital, isSupported

SUBSHELLS = "spdf"
P_AXES = {0: "z", 1: "x", -1: "y"}


@dataclass(frozen=True)
class Orbital:
    """Quantum state (n, l, m) plus how to draw it. Rejected at construction unless sampleable."""
    n: int
    l: int
    m: int
    scale: float
    name: str
    color: tuple[float, float, float]

    def __post_init__(self):
        if not (self.n >= 1 and 0 <= self.l < self.n and -self.l <= self.m <= self.l):
            raise InvalidQuantumNumbers(self.n, self.l, self.m)
        if not isSupported(self.n, self.l, self.m):
            raise UnsupportedOrbital(self.n, self.l, self.m)
        if not self.scale > 0:
            raise ValueError(f"Orbital scale must be positive, got {self.scale}")
        color = tuple(float(c) for c in self.color)
        if len(color) != 3 or not all(0.0 <= c <= 1.0 for c in color):
            raise ValueError(f"Orbital color must be three components in [0, 1], got {self.color}")
        object.__setattr__(self, 'color', color)


def orbitalLabel(n: int, l: int, m: int) -> str:
    """Spectroscopic label, e.g. 1s, 2pz, 2px."""
    subshell = SUBSHELLS[l] if l < len(SUBSHELLS) else f"(l={l})"
    suffix = P_AXES.get(m, "") if l == 1 else (f"(m={m})" if m else "")
    return f"{n}{subshell}{suffix}"


def makeOrbital(n, l, m, scale=2.0, color=None, name=None):
    return Orbital(n, l, m, scale, name or orbitalLabel(n, l, m), color or (1.0, 1.0, 1.0))


CATALOGUE = (
    makeOrbital(1, 0, 0, color=(1.0, 0.0, 0.0)),
    makeOrbital(2, 1, 1, color=(0.0, 1.0, 0.0)),
    makeOrbital(2, 1, -1, color=(0.0, 0.5, 1.0)),
    makeOrbital(2, 1, 0, color=(1.0, 1.0, 0.0)),
)

DEFAULT_ORBITAL = CATALOGUE[0]
