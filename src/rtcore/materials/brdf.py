"""BRDF building blocks for direct lighting.

Stateless Taichi functions used by the material models:

    lambert                  kd * cd / pi
    phong                    ks * max(dot(r, v), 0)^exp, r mirrored about n
    fresnel_schlick          f0 + (1 - f0) * (1 - h.v)^5
    normal_distribution_ggx  Trowbridge-Reitz GGX with a = roughness^2
    geometry_schlick_ggx     Schlick-GGX with k = (roughness^2 + 1)^2 / 8
    geometry_smith           product of the view and light Schlick-GGX terms

Every dot product that ends up in a denominator or a power is floored at
DOT_EPSILON (0.01) rather than 0 so that grazing angles stay finite.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.materials.brdf import fresnel_schlick
    >>> # Within a Taichi kernel:
    >>> # f = fresnel_schlick(h, v, ti.math.vec3(0.04))
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

DOT_EPSILON = 0.01


@ti.func
def lambert(kd: ti.f32, cd: vec3) -> vec3:
    """Lambert diffuse BRDF with a scalar reflectance.

    Args:
        kd: Diffuse reflection coefficient.
        cd: Diffuse color.

    Returns:
        kd * cd / pi.
    """
    return kd * cd / tm.pi


@ti.func
def lambert_tinted(kd: vec3, cd: vec3) -> vec3:
    """Lambert diffuse BRDF with a per-channel reflectance."""
    return kd * cd / tm.pi


@ti.func
def phong(ks: ti.f32, exponent: ti.f32, l: vec3, v: vec3, n: vec3) -> vec3:
    """Phong specular lobe.

    Both l and v point away from the surface. The light direction is mirrored
    about the normal, and the cosine to the view direction is raised to the
    Phong exponent. The base is clamped at zero so fractional exponents
    never see a negative input.

    Args:
        ks: Specular reflection coefficient.
        exponent: Phong exponent.
        l: Unit direction from the surface toward the light.
        v: Unit direction from the surface toward the viewer.
        n: Unit surface normal.

    Returns:
        Gray specular color (ks * cos^exponent in every channel).
    """
    r = 2.0 * tm.max(tm.dot(n, l), DOT_EPSILON) * n - l
    cos_alpha = tm.max(tm.dot(r, v), 0.0)
    value = ks * cos_alpha**exponent
    return vec3(value, value, value)


@ti.func
def fresnel_schlick(h: vec3, v: vec3, f0: vec3) -> vec3:
    """Schlick's approximation of the Fresnel reflectance.

    Args:
        h: Unit half vector between view and light directions.
        v: Unit view direction.
        f0: Base reflectivity at normal incidence (RGB).

    Returns:
        f0 + (1 - f0) * (1 - dot(h, v))^5 per channel.
    """
    one_minus = 1.0 - tm.dot(h, v)
    return f0 + (vec3(1.0, 1.0, 1.0) - f0) * (one_minus**5)


@ti.func
def normal_distribution_ggx(n: vec3, h: vec3, roughness: ti.f32) -> ti.f32:
    """Trowbridge-Reitz GGX normal distribution.

    Uses the squared-roughness remapping a = roughness^2.

    Args:
        n: Unit surface normal.
        h: Unit half vector.
        roughness: Perceptual roughness in (0, 1].

    Returns:
        a^2 / (pi * ((n.h)^2 * (a^2 - 1) + 1)^2).
    """
    a = roughness * roughness
    a2 = a * a
    n_dot_h = tm.dot(n, h)
    denom = n_dot_h * n_dot_h * (a2 - 1.0) + 1.0
    return a2 / (tm.pi * denom * denom)


@ti.func
def geometry_schlick_ggx(n: vec3, v: vec3, roughness: ti.f32) -> ti.f32:
    """Schlick-GGX geometry term for direct lighting.

    Args:
        n: Unit surface normal.
        v: Unit direction away from the surface (view or light).
        roughness: Perceptual roughness in (0, 1].

    Returns:
        nDotV / (nDotV * (1 - k) + k) with k = (roughness^2 + 1)^2 / 8.
    """
    a = roughness * roughness
    k = (a + 1.0) * (a + 1.0) / 8.0
    n_dot_v = tm.max(tm.dot(n, v), DOT_EPSILON)
    return n_dot_v / (n_dot_v * (1.0 - k) + k)


@ti.func
def geometry_smith(n: vec3, v: vec3, l: vec3, roughness: ti.f32) -> ti.f32:
    """Smith geometry term: shadowing times masking."""
    return geometry_schlick_ggx(n, v, roughness) * geometry_schlick_ggx(n, l, roughness)
