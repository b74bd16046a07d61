from proserunner.cli import main

raise SystemExit(main())
