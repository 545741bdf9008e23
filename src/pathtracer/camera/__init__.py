"""Camera module for primary ray generation.

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across the image
    v in [0, 1]: bottom to top across the image

``camera.camera`` holds the active camera in Taichi fields, so import it
after init_taichi():
    from pathtracer.camera.camera import Camera, setup_camera
"""
