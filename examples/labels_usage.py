"""
Example: keeping typed settings on an object's labels and annotations.

Annotations hold values that are too long or too free-form for a label;
labels hold short values worth selecting on.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import List

from metatags import ObjectMeta, Uint8, annotation, decode, encode, label, load


@dataclass
class Rollout:
    owner: str = annotation("owner", default="")
    max_surge: Uint8 = label("max-surge", default=1)
    canary: bool = label("canary", default=False)
    pause: timedelta = annotation("pause", default=timedelta(0))
    regions: List[str] = label("regions", default_factory=list)
    notes: str = ""  # untagged, never stored


# =============================================================================
# Example 1: write a record onto fresh metadata
# =============================================================================
meta = ObjectMeta(name="web", namespace="prod")
rollout = Rollout(
    owner="platform-team",
    max_surge=2,
    canary=True,
    pause=timedelta(minutes=5),
    regions=["eu-west-1", "us-east-1"],
)

encode(rollout, meta, "rollout.example.com")
print(meta.annotations)  # {'rollout.example.com/owner': 'platform-team', 'rollout.example.com/pause': '5m0s'}
print(meta.labels)       # {'rollout.example.com/max-surge': '2', 'rollout.example.com/canary': 'true', ...}


# =============================================================================
# Example 2: read it back into a new record
# =============================================================================
restored = load(meta, Rollout, "rollout.example.com")
assert restored.regions == ["eu-west-1", "us-east-1"]
assert restored.pause == timedelta(minutes=5)


# =============================================================================
# Example 3: refresh an existing record in place
# =============================================================================
meta.labels["rollout.example.com/max-surge"] = "4"
decode(meta, rollout, "rollout.example.com")
print(f"max_surge is now {rollout.max_surge}")
