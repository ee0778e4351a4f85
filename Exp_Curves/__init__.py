# ##### BEGIN GPL LICENSE BLOCK #####
#
#  This program is free software; you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation; either version 2
#  of the License, or (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with this program; if not, write to the Free Software Foundation,
#  Inc., 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301, USA.
#
# ##### END GPL LICENSE BLOCK #####

"""
Exp_Curves - animation curve compression.

Translation, rotation, scale and morph weight channels are approximated by
piecewise Chebyshev series with 16-bit fixed point coefficients, every sample
within a per-kind error bound. A continuity-constrained cubic segmenter is
provided as an alternative fitter.

    from Exp_Curves import EncodingSession, ChannelSamples

    session = EncodingSession()
    session.encode_channel(ChannelSamples("Hips/Walk", "translation", times, values, 3))
    print(session.summary())
"""

__version__ = "1.0.0"

from .errors import (
    UnsupportedChannelKindError,
    ChebyshevDomainError,
    SegmentationError,
    FitTrialError,
    CoefficientRangeError,
)
from .curves import (
    TRANSLATION,
    ROTATION,
    SCALE,
    WEIGHTS,
    ChannelSamples,
    ChannelReport,
    EncodedSegment,
    Chebyshev,
    QuantizedChebyshev,
    SmoothingOracle,
    CubicSegment,
    CubicSegmenter,
)
from .encoding import (
    EncoderConfig,
    ChannelEncoder,
    ChannelDecoder,
    EncodingSession,
)
from .engine import EngineCore

__all__ = [
    'UnsupportedChannelKindError',
    'ChebyshevDomainError',
    'SegmentationError',
    'FitTrialError',
    'CoefficientRangeError',
    'TRANSLATION',
    'ROTATION',
    'SCALE',
    'WEIGHTS',
    'ChannelSamples',
    'ChannelReport',
    'EncodedSegment',
    'Chebyshev',
    'QuantizedChebyshev',
    'SmoothingOracle',
    'CubicSegment',
    'CubicSegmenter',
    'EncoderConfig',
    'ChannelEncoder',
    'ChannelDecoder',
    'EncodingSession',
    'EngineCore',
]
