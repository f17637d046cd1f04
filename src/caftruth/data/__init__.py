"""Data structures which hold simulated truth information.

**Core Data Structures:**
- `TrueInteraction`: true interaction of a probe particle (usually a neutrino)
  with the detector, with its kinematics, generator metadata, flux provenance
  and primary daughters
- `TrueParticle`: true particle produced in an interaction
- `RunInfo`: run, subrun and event IDs of an entry
- `ObjectList`: list typed by a default object when it is empty

**Base Class Pattern:**
All data structures inherit from :class:`DataBase`, which provides:
- Registries of attribute kinds (enumerated, vectors, strings, booleans, etc.)
  which storage tools use to lay out files by introspection
- Per-instance default arrays, filled with the signaling NaN sentinel
- Field-by-field equality which treats NaN sentinels as equal
- Flattening to a dictionary of scalars for tabular storage

**Example Usage:**
```python
from caftruth.data import TrueInteraction, TrueParticle
from caftruth.utils.enums import ScatteringMode

interaction = TrueInteraction(pdg=14, iscc=True, mode=ScatteringMode.QE, E=2.5)
interaction.add_prim(TrueParticle(pdg=13))
```
"""

from .base import *
from .interaction import *
from .list import *
from .particle import *
from .run_info import *
