from .view_widget import AnimationLoop, MorphViewWidget, ParticleRenderer, render_frame_to_image

__all__ = ["AnimationLoop", "MorphViewWidget", "ParticleRenderer", "render_frame_to_image"]
