"""
Audio capture and speech services for the speaking coach.

- capture: PortAudio microphone stream and input-device probing
- speech: Google Cloud streaming recognition, text-to-speech, and console stand-ins

Submodules import PortAudio and the Google Cloud clients, so they are
imported directly where needed rather than re-exported here.
"""
