"""
Defaults for the samplers, read from the environment:

    BNMC_SAMPLE_COUNT   counted Gibbs iterations per query (2000)
    BNMC_BURN_IN        uncounted sweeps before counting starts (0)
    BNMC_THIN           sweeps per counted iteration (1)
    BNMC_SEED           seed for the random generator (unset: fresh entropy)
"""
from collections import namedtuple

from environs import Env

Settings = namedtuple("Settings", ["sample_count", "burn_in", "thin", "seed"])


def read_settings(env=None) -> Settings:
    if env is None:
        env = Env()

    with env.prefixed("BNMC_"):
        return Settings(
            sample_count=env.int("SAMPLE_COUNT", 2000, validate=lambda n: n > 0),
            burn_in=env.int("BURN_IN", 0, validate=lambda n: n >= 0),
            thin=env.int("THIN", 1, validate=lambda n: n > 0),
            seed=env.int("SEED", None))


_settings = read_settings()

MCMC_DEFAULT_SAMPLE_COUNT = _settings.sample_count
MCMC_DEFAULT_BURN_IN = _settings.burn_in
MCMC_DEFAULT_THIN = _settings.thin
DEFAULT_SEED = _settings.seed
