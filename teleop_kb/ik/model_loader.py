import mujoco


def load_model(source: str) -> mujoco.MjModel:
    """
    Loads a MuJoCo model from an MJCF (.xml) file or a raw MJCF string.

    Args:
        source: Path to the model file, or MJCF XML content.

    Returns:
        A mujoco.MjModel instance.
    """
    if source.lstrip().startswith("<"):
        return mujoco.MjModel.from_xml_string(source)
    elif source.endswith(".xml"):
        return mujoco.MjModel.from_xml_path(source)
    else:
        raise ValueError(
            f"Unsupported model source: {source}. Only MJCF .xml files or XML strings are supported."
        )
