def test_imports():
    """
    @brief
    Verifies that all core Allocheck modules are importable.

    @details
    Ensures package structure integrity and confirms that the validator,
    loaders, metrics and visualizer resolve without import errors.
    """
    import allocheck.dataloader.config_loader
    import allocheck.dataloader.rows_loader
    import allocheck.dataloader.rules_loader
    import allocheck.metrics.metrics
    import allocheck.validator.validator
    import allocheck.visualizer.plot

    # --- Assert ---
    assert all(
        [
            allocheck.dataloader.config_loader,
            allocheck.dataloader.rows_loader,
            allocheck.dataloader.rules_loader,
            allocheck.metrics.metrics,
            allocheck.validator.validator,
            allocheck.visualizer.plot,
        ]
    )
