from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    color: str
    size: float
    life: float = 1.0


class ParticleSystem:
    """星星建立與連線時的爆發特效（只影響繪製，不觸碰場景）"""

    DECAY = 0.02

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.particles: List[Particle] = []

    def __len__(self) -> int:
        return len(self.particles)

    def burst(self, x: float, y: float, color: str, count: int = 20) -> None:
        """以世界座標為中心向外噴出粒子"""
        for i in range(count):
            angle = (math.pi * 2 * i) / count
            speed = 2 + self.rng.random() * 3
            self.particles.append(Particle(
                x=x,
                y=y,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
                color=color,
                size=2 + self.rng.random() * 3,
            ))

    def step(self) -> None:
        """前進一格：更新位置、衰減並移除消失的粒子"""
        for particle in self.particles:
            particle.x += particle.vx
            particle.y += particle.vy
            particle.vx *= 0.95
            particle.vy *= 0.95
            particle.life -= self.DECAY
        self.particles = [p for p in self.particles if p.life > 0]
