"""reco - Subtitle search and narrative recomposition.

Parses SRT/VTT subtitle files into timed segments, searches dialogue across
transcripts, and assembles selected segment spans ("aggregates") into an
ordered narrative per project.
"""

__version__ = "0.1.0"
