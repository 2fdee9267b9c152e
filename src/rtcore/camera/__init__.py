"""Camera module for view and ray generation.

Components:
    pinhole: Yaw/pitch pinhole camera, camera-to-world transform and
        primary ray generation

The pinhole module allocates Taichi fields for the uploaded camera basis.
Import it directly after ti.init():
    from rtcore.camera.pinhole import Camera, setup_camera
"""
