#!/usr/bin/env python3

#============================================

class ClipmixError(RuntimeError):
	"""Base class for failures reported by the mix, plan and render passes."""

#============================================

class DecodeError(ClipmixError):
	"""Media could not be decoded or probed."""
	def __init__(self, media_ref, reason: str = None):
		self.media_ref = media_ref
		self.reason = reason
		message = f"could not decode {media_ref}"
		if reason:
			message += f": {reason}"
		super().__init__(message)

#============================================

class FormatMismatch(ClipmixError):
	"""Clips handed to the mixer disagree on sample rate or channel count."""
	def __init__(self, expected: tuple, found: tuple, clip_id=None):
		self.expected = expected
		self.found = found
		self.clip_id = clip_id
		message = (
			f"audio format mismatch: expected {expected[0]} Hz x {expected[1]} ch, "
			f"found {found[0]} Hz x {found[1]} ch"
		)
		if clip_id is not None:
			message += f" in clip {clip_id}"
		super().__init__(message)

#============================================

class EmptyTimeline(ClipmixError):
	"""Planning was attempted with no video clips on the timeline."""
	def __init__(self, message: str = "timeline has no video clips to plan"):
		super().__init__(message)

#============================================

class RenderError(ClipmixError):
	"""The render engine failed; stderr is kept verbatim."""
	def __init__(self, message: str, returncode: int = None, stderr: str = None):
		self.returncode = returncode
		self.stderr = stderr
		super().__init__(message)
