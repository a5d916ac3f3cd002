from .kart_probe import KartProber, probe_server, MAX_READS
