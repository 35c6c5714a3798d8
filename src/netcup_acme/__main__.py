from netcup_acme.cli import main

raise SystemExit(main())
