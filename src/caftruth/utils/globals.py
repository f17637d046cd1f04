"""Module which contains all global variables shared across the project."""

import numpy as np

# Bit pattern of the single-precision signaling NaN used as a sentinel for
# floating point attributes which were not computed or are not applicable
SNAN_BITS = 0x7FA00000

# Single-precision signaling NaN sentinel (built from its bits, no arithmetic)
SNAN = np.array([SNAN_BITS], dtype=np.uint32).view(np.float32)[0]

# Invalid labels
INVAL_PDG = 0           # Invalid particle PDG code
INVAL_TID = 4294967295  # Invalid LArCV track ID (larcv.kINVALID_UINT)
INVAL_ID = -1           # Invalid index/track ID
INVAL_DCY_MODE = -1     # Parent decay mode not set

# Charged lepton PDG codes (absolute values)
ELEC_PDG = 11
MUON_PDG = 13
TAU_PDG = 15
CHARGED_LEPTON_PDGS = (ELEC_PDG, MUON_PDG, TAU_PDG)

# Neutrino current type (LArCV/nusimdata convention)
NU_CURR_TYPE = {
    -1: 'UnknownCurrent',
    0:  'CC',
    1:  'NC'
}
