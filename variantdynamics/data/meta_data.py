import io

import pandas as pd

from variantdynamics.config import Files


def get_aliases(aliases: bytes = Files.ALIASES) -> dict:
    """
    Load the pango alias table.

    :param aliases: csv with the columns alias and lineage, defaults to the
        aliases.csv in the data dir of the package
    :returns: dictionary mapping each alias prefix (e.g. AY) to its full
        lineage name (e.g. B.1.617.2)
    """
    aliases = pd.read_csv(io.BytesIO(aliases))
    return dict(zip(aliases.alias.tolist(), aliases.lineage.tolist()))

