#!/usr/bin/env python3
"""Example of basic HEALPix operations using torchpix."""

import math

import torch

import torchpix
from torchpix import chealpix


def main():
    # 1. Setup NSIDE
    nside = 128
    npix = torchpix.nside2npix(nside)
    print(f"HEALPix NSIDE={nside}, NPIX={npix}")

    # 2. Convert coordinates to pixel indices
    # Using (theta, phi) in radians, theta measured from the north pole
    theta = torch.tensor([0.1, 0.5, 1.0, 1.5], dtype=torch.float64)
    phi = torch.tensor([0.0, 1.0, 2.0, 3.0], dtype=torch.float64)

    pix = torchpix.ang2pix(nside, theta, phi)
    print("\nCoordinates (theta, phi) to Pixels (RING):")
    for t, p, pi in zip(theta, phi, pix):
        print(f"  theta={t:.2f}, phi={p:.2f} -> pixel={pi.item()}")

    # 3. Convert pixels back to pixel-centre coordinates
    theta_out, phi_out = torchpix.pix2ang(nside, pix)
    print("\nPixels back to Coordinates:")
    for pi, t, p in zip(pix, theta_out, phi_out):
        print(f"  pixel={pi.item()} -> theta={t:.4f}, phi={p:.4f}")

    # 4. Switch ordering
    nest = torchpix.ring2nest(nside, pix)
    print("\nRING -> NEST:")
    for r, n in zip(pix, nest):
        print(f"  {r.item()} -> {n.item()}")

    # 5. Neighbours (SW, W, NW, N, NE, E, SE, S), -1 where none exists
    print("\nNeighbours of the first pixel (NEST):")
    print(f"  {torchpix.neighbours(nside, nest[0]).tolist()}")

    # 6. Map reordering
    m = torch.linspace(0, 100, npix, dtype=torch.float64)
    m_nest = torchpix.reorder(m, r2n=True)
    print(f"\nReordered map: value of RING pixel {pix[0].item()} now at NEST {nest[0].item()}: "
          f"{m_nest[nest[0]].item():.3f}")

    # 7. Scalar interface with the C names, wide indices
    big = 1 << 29
    ip = chealpix.ang2pix_nest64(big, math.pi / 3, 1.0)
    print(f"\nNSIDE=2**29: ang2pix_nest64 -> {ip} (ring {chealpix.nest2ring64(big, ip)})")


if __name__ == "__main__":
    main()
