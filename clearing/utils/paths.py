"""Output file naming for replayed sessions."""

from pathlib import Path
from typing import Union


def derive_output_path(input_path: Union[str, Path]) -> Path:
    """
    Derive the output file path for an input file.
    
    The first occurrence of ``input`` in the file name becomes ``output``
    (``orders_input3.txt`` -> ``orders_output3.txt``). Names without it keep
    their stem and get an ``.out`` extension.
    
    Args:
        input_path: Path of the session input file
        
    Returns:
        Path in the same directory as the input
    """
    path = Path(input_path)
    name = path.name
    
    if "input" in name:
        return path.with_name(name.replace("input", "output", 1))
    
    return path.with_name(f"{path.stem}.out")
