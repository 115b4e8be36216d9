"""Chart-of-accounts categories: models, commands and the batch sequencer."""
